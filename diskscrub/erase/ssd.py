"""Transport-specific secure erase for flash media.

SATA devices go through the ATA security command chain (set password,
enhanced erase, standard erase). NVMe devices get a single secure format.
Anything else, typically USB-attached flash, has no secure-erase primitive
available and falls back to a full-capacity zero fill.
"""
from typing import Callable, Optional

from diskscrub.core.audit import FAILED, INFO, STARTED, SUCCESS, WARNING, AuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.config import DEFAULT_BLOCK_SIZE
from diskscrub.erase.overwrite import Pattern, overwrite_extent
from diskscrub.models.disk import Transport
from diskscrub.models.errors import ChainStepFailure, ToolUnavailableError
from diskscrub.services.disk_tools import CommandResult, DiskTools

ATA = "ata"
NVME = "nvme"
BLOCK_WIPE = "block-wipe"


class SSDSecureEraseStrategy:
    """Selects and runs the secure-erase sub-path for a transport."""

    def __init__(self, tools: DiskTools, audit: AuditTrail,
                 cancel_token: Optional[CancelToken] = None,
                 password: str = "0000", block_size: int = DEFAULT_BLOCK_SIZE):
        self.tools = tools
        self.audit = audit
        self.cancel_token = cancel_token or CancelToken()
        self.password = password
        self.block_size = block_size

    def sanitize_ssd(self, device_path: str, transport: Transport):
        """Erase ``device_path`` with the sub-path matching ``transport``.

        Raises:
            ChainStepFailure: Naming the sub-path and step that failed
            ErasureCancelled: If cancellation was requested between steps
        """
        if transport is Transport.SATA:
            self._ata_secure_erase(device_path)
        elif transport is Transport.NVME:
            self._nvme_secure_format(device_path)
        else:
            self._block_wipe(device_path, transport)

    # -----------------------------
    #  SATA: ATA security chain
    # -----------------------------
    def _ata_secure_erase(self, device_path: str):
        self.audit.record("ata secure erase", STARTED, device=device_path)

        self.cancel_token.check(device_path, "ata set-password")
        result = self._invoke(
            lambda: self.tools.set_security_password(device_path, self.password)
        )
        if not result.ok:
            # Nothing else may run on a device whose password state is unknown
            self.audit.record("ata set-password", FAILED, result.diagnostic, device=device_path)
            raise ChainStepFailure(device_path, ATA, "set-password", result.diagnostic)
        self.audit.record("ata set-password", SUCCESS, device=device_path)

        self.cancel_token.check(
            device_path, "ata enhanced-erase", "ATA security password is still set"
        )
        result = self._invoke(
            lambda: self.tools.security_erase(device_path, self.password, enhanced=True)
        )
        if result.ok:
            self.audit.record(
                "ata enhanced-erase", SUCCESS, "enhanced secure erase completed",
                device=device_path,
            )
            return
        self.audit.record(
            "ata enhanced-erase", WARNING,
            f"{result.diagnostic}; falling back to standard secure erase",
            device=device_path,
        )

        self.cancel_token.check(
            device_path, "ata standard-erase", "ATA security password is still set"
        )
        result = self._invoke(
            lambda: self.tools.security_erase(device_path, self.password, enhanced=False)
        )
        if not result.ok:
            self.audit.record("ata standard-erase", FAILED, result.diagnostic, device=device_path)
            raise ChainStepFailure(
                device_path, ATA, "standard-erase", result.diagnostic, security_locked=True
            )
        self.audit.record(
            "ata standard-erase", SUCCESS, "standard secure erase completed",
            device=device_path,
        )

    # -----------------------------
    #  NVMe: secure format
    # -----------------------------
    def _nvme_secure_format(self, device_path: str):
        self.audit.record("nvme secure format", STARTED, device=device_path)
        self.cancel_token.check(device_path, "nvme secure-format")

        result = self._invoke(lambda: self.tools.nvme_secure_format(device_path))
        if not result.ok:
            self.audit.record("nvme secure-format", FAILED, result.diagnostic, device=device_path)
            raise ChainStepFailure(device_path, NVME, "secure-format", result.diagnostic)
        self.audit.record("nvme secure-format", SUCCESS, device=device_path)

    # -----------------------------
    #  Other transports: zero fill
    # -----------------------------
    def _block_wipe(self, device_path: str, transport: Transport):
        self.audit.record(
            "block wipe", WARNING,
            f"no secure-erase primitive for transport {transport.value}; "
            "using lower-assurance zero fill",
            device=device_path,
        )
        self.cancel_token.check(device_path, "block-wipe zero-fill")

        try:
            capacity = self.tools.capacity(device_path)
        except ToolUnavailableError as e:
            self.audit.record("block-wipe capacity", FAILED, str(e), device=device_path)
            raise ChainStepFailure(device_path, BLOCK_WIPE, "capacity", str(e)) from e
        if capacity <= 0:
            self.audit.record(
                "block-wipe capacity", FAILED, "capacity is zero", device=device_path
            )
            raise ChainStepFailure(
                device_path, BLOCK_WIPE, "capacity", "capacity query returned no usable size"
            )

        self.audit.record(
            "block-wipe zero-fill", INFO, f"writing zeros over {capacity} bytes",
            device=device_path,
        )
        result = self._invoke(
            lambda: overwrite_extent(
                self.tools, device_path, Pattern.ZERO, capacity, self.block_size
            )
        )
        if not result.ok:
            self.audit.record("block-wipe zero-fill", FAILED, result.diagnostic, device=device_path)
            raise ChainStepFailure(device_path, BLOCK_WIPE, "zero-fill", result.diagnostic)
        self.audit.record("block-wipe zero-fill", SUCCESS, device=device_path)

    @staticmethod
    def _invoke(command: Callable[[], CommandResult]) -> CommandResult:
        """Run a primitive, folding an unavailable tool into a failed result."""
        try:
            return command()
        except ToolUnavailableError as e:
            return CommandResult(returncode=127, stderr=str(e))
