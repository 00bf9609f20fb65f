"""External disk tooling: lsblk, hdparm, nvme-cli, blockdev and dd.

Every command goes through a single ``run_cmd`` callable so that tests (and
mock mode) can replace the real subprocess layer.
"""
import subprocess
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from diskscrub.core.logger import get_logger
from diskscrub.models.errors import DetectionFailure, ToolUnavailableError

logger = get_logger(__name__)

RANDOM_SOURCE = "/dev/urandom"
ZERO_SOURCE = "/dev/zero"


@dataclass
class CommandResult:
    """Exit status and captured output of one external command."""
    args: List[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """Best available explanation of what the command printed."""
        text = (self.stderr or self.stdout or "").strip()
        if text:
            return text
        return f"exit status {self.returncode}"


RunCmd = Callable[[List[str]], CommandResult]


class DiskTools:
    """Issues the enumeration, query and destructive disk commands."""

    MOCK_CAPACITY = 1024 ** 3

    def __init__(self, run_cmd: Optional[RunCmd] = None, use_sudo: bool = False,
                 mock: bool = False):
        self.run_cmd = run_cmd or self._run
        self.use_sudo = use_sudo
        self.mock = mock

    # -----------------------------
    #  Command execution
    # -----------------------------
    def run(self, args: List[str]) -> CommandResult:
        """Run one command, prefixed with sudo when configured.

        Raises:
            ToolUnavailableError: If the executable cannot be started
        """
        cmd = (["sudo", "-n"] + args) if self.use_sudo else list(args)
        if self.mock:
            logger.info(f"MOCK: Would run {' '.join(cmd)}")
            return CommandResult(args=cmd)
        logger.debug(f"Running: {' '.join(cmd)}")
        return self.run_cmd(cmd)

    @staticmethod
    def _run(args: List[str]) -> CommandResult:
        try:
            # Own session: a terminal Ctrl+C must not kill a write in flight
            completed = subprocess.run(
                args, capture_output=True, text=True, errors="replace",
                start_new_session=True,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ToolUnavailableError(args[0], str(e)) from e
        return CommandResult(
            args=args,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    # -----------------------------
    #  Enumeration and identify
    # -----------------------------
    def list_block_devices(self) -> List[Tuple[str, Optional[str]]]:
        """List whole-disk block devices as (name, transport_hint) pairs.

        The header line is ignored and blank lines are skipped. A line with
        only a name yields a ``None`` transport hint.

        Raises:
            ToolUnavailableError: If lsblk cannot be executed
            DetectionFailure: If lsblk exits with an error
        """
        if self.mock:
            logger.info("MOCK: Would list block devices with lsblk")
            return []

        result = self.run(["lsblk", "-d", "-n", "-o", "NAME,TRAN"])
        if not result.ok:
            raise DetectionFailure(f"lsblk failed: {result.diagnostic}")

        devices = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if not parts:
                continue
            # Older lsblk builds ignore -n; drop the header when it shows up
            if parts[0] == "NAME":
                continue
            name = parts[0].strip()
            hint = parts[1].strip() if len(parts) >= 2 else None
            devices.append((name, hint))
        return devices

    def nvme_identify(self, name: str) -> CommandResult:
        return self.run(["nvme", "id-ctrl", f"/dev/{name}", "-H"])

    def ata_identify(self, name: str) -> CommandResult:
        return self.run(["hdparm", "-I", f"/dev/{name}"])

    # -----------------------------
    #  Capacity and overwrite
    # -----------------------------
    def capacity(self, device_path: str) -> int:
        """Return the device size in bytes, or 0 when it cannot be parsed.

        Raises:
            ToolUnavailableError: If blockdev cannot be executed
        """
        if self.mock:
            logger.info(f"MOCK: Would query capacity of {device_path}")
            return self.MOCK_CAPACITY

        result = self.run(["blockdev", "--getsize64", device_path])
        if not result.ok:
            logger.warning(f"blockdev failed for {device_path}: {result.diagnostic}")
            return 0
        try:
            return max(int(result.stdout.strip()), 0)
        except ValueError:
            logger.warning(f"Unparsable capacity for {device_path}: {result.stdout!r}")
            return 0

    def write_blocks(self, device_path: str, source: str, block_size: int,
                     count: int, offset: int = 0) -> CommandResult:
        """Stream ``count`` blocks of ``block_size`` bytes from ``source``.

        Args:
            device_path: Target block device
            source: Pattern source (/dev/urandom or /dev/zero)
            block_size: Transfer block size in bytes
            count: Number of blocks to write
            offset: Byte offset on the target where writing starts
        """
        args = [
            "dd",
            f"if={source}",
            f"of={device_path}",
            f"bs={block_size}",
            f"count={count}",
            "iflag=fullblock",
            "conv=fsync",
        ]
        if offset:
            args.extend([f"seek={offset}", "oflag=seek_bytes"])
        return self.run(args)

    # -----------------------------
    #  Secure-erase primitives
    # -----------------------------
    def set_security_password(self, device_path: str, password: str) -> CommandResult:
        return self.run([
            "hdparm", "--user-master", "u", "--security-set-pass", password, device_path,
        ])

    def security_erase(self, device_path: str, password: str,
                       enhanced: bool = False) -> CommandResult:
        flag = "--security-erase-enhanced" if enhanced else "--security-erase"
        return self.run(["hdparm", "--user-master", "u", flag, password, device_path])

    def nvme_secure_format(self, device_path: str) -> CommandResult:
        return self.run(["nvme", "format", device_path, "--ses=1"])
