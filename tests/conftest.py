"""Shared test fixtures for diskscrub tests."""
import threading

import pytest

from diskscrub.core.audit import AuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.config import ScrubConfig
from diskscrub.models.disk import DiskDescriptor, MediaType, Transport
from diskscrub.services.disk_tools import CommandResult, DiskTools


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout)


def fail(stderr: str = "command failed", returncode: int = 1) -> CommandResult:
    return CommandResult(returncode=returncode, stderr=stderr)


class RecordingRunner:
    """Fake ``run_cmd`` that records every command and answers via a handler.

    The handler returns a CommandResult or an exception instance to raise.
    """

    def __init__(self, handler=None):
        self.handler = handler or (lambda args: ok())
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, args):
        with self._lock:
            self.calls.append(list(args))
        result = self.handler(list(args))
        if isinstance(result, Exception):
            raise result
        result.args = list(args)
        return result

    def commands(self, executable):
        with self._lock:
            return [c for c in self.calls if c[0] == executable]

    def calls_with(self, token):
        with self._lock:
            return [c for c in self.calls if token in c]


def capacity_handler(capacity: int, overrides=None):
    """Handler answering blockdev with ``capacity`` and everything else with success."""
    def handler(args):
        if overrides:
            result = overrides(args)
            if result is not None:
                return result
        if args[0] == "blockdev":
            return ok(f"{capacity}\n")
        return ok()
    return handler


@pytest.fixture
def audit():
    return AuditTrail()


@pytest.fixture
def token():
    return CancelToken()


@pytest.fixture
def config(tmp_path):
    return ScrubConfig(audit_log=str(tmp_path / "audit.log"))


@pytest.fixture
def make_tools():
    """Build DiskTools around a RecordingRunner; returns (tools, runner)."""
    def _make(handler=None):
        runner = RecordingRunner(handler)
        return DiskTools(run_cmd=runner), runner
    return _make


@pytest.fixture
def hdd_descriptor():
    return DiskDescriptor("/dev/sda", "WDC WD20EZRZ", MediaType.HDD, Transport.SATA)


@pytest.fixture
def sata_ssd_descriptor():
    return DiskDescriptor("/dev/sdb", "Samsung SSD 870 EVO", MediaType.SSD, Transport.SATA)


@pytest.fixture
def nvme_descriptor():
    return DiskDescriptor("/dev/nvme0n1", "Samsung PM9A1", MediaType.SSD, Transport.NVME)


@pytest.fixture
def unknown_descriptor():
    return DiskDescriptor("/dev/sdc", "Disk sdc", MediaType.UNKNOWN, Transport.USB)
