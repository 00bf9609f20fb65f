"""Exception taxonomy for detection and erasure."""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diskscrub.models.task import SanitizationReport


class ScrubError(Exception):
    """Base class for all diskscrub errors."""
    pass


class ConfigError(ScrubError):
    """Raised when a configuration file is invalid."""
    pass


class DetectionFailure(ScrubError):
    """Enumeration or info tooling is unavailable or produced nothing usable."""
    pass


class ToolUnavailableError(DetectionFailure):
    """Raised when an external command cannot be invoked at all."""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        self.reason = reason
        super().__init__(f"{tool} could not be executed: {reason}")


class NoDevicesDetected(DetectionFailure):
    """Raised when the enumeration step fails or yields zero devices."""
    pass


class TaskStateError(ScrubError):
    """Raised on an illegal erasure task state transition."""
    pass


class EraseError(ScrubError):
    """A device-scoped erasure failure.

    Every subclass carries the device path so that aggregate reports can
    name the affected device without additional bookkeeping.
    """

    kind = "erase-error"

    def __init__(self, device_path: str, message: str):
        self.device_path = device_path
        self.message = message
        super().__init__(f"{device_path}: {message}")


class ClassificationAmbiguity(EraseError):
    """Media type is unknown, so no erasure method is considered safe."""

    kind = "classification-ambiguity"

    def __init__(self, device_path: str):
        super().__init__(
            device_path,
            "cannot determine safe erasure method (media type unknown)",
        )


class SynthesizedDeviceRefused(EraseError):
    """The descriptor was fabricated and does not describe real hardware."""

    kind = "synthesized-device"

    def __init__(self, device_path: str):
        super().__init__(
            device_path,
            "descriptor is synthesized demo data; refusing to erase",
        )


class CapacityQueryFailure(EraseError):
    kind = "capacity-query-failure"


class PassFailure(EraseError):
    """A single overwrite pass returned a failing exit status."""

    kind = "pass-failure"

    def __init__(self, device_path: str, pass_number: int, pattern: str, diagnostic: str = ""):
        self.pass_number = pass_number
        self.pattern = pattern
        self.diagnostic = diagnostic
        message = f"overwrite pass {pass_number}/3 ({pattern}) failed"
        if diagnostic:
            message += f": {diagnostic}"
        super().__init__(device_path, message)


class ChainStepFailure(EraseError):
    """A secure-erase command chain step failed.

    Attributes:
        sub_path: Command family that was running ("ata", "nvme", "block-wipe")
        step: Step inside that family (e.g. "set-password")
        diagnostic: Tool output explaining the failure, if any
        security_locked: The device may be left with its security password set
    """

    kind = "chain-step-failure"

    def __init__(self, device_path: str, sub_path: str, step: str, diagnostic: str = "",
                 security_locked: bool = False):
        self.sub_path = sub_path
        self.step = step
        self.diagnostic = diagnostic
        self.security_locked = security_locked
        message = f"{sub_path} {step} failed"
        if diagnostic:
            message += f": {diagnostic}"
        if security_locked:
            message += " (ATA security password may still be set)"
        super().__init__(device_path, message)


class DeviceNotFound(EraseError):
    kind = "device-not-found"

    def __init__(self, device_path: str):
        super().__init__(device_path, "device not found in detected device set")


class ErasureCancelled(EraseError):
    """Cancellation was requested before the named step started."""

    kind = "cancelled"

    def __init__(self, device_path: str, step: str, detail: str = ""):
        self.step = step
        message = f"cancelled before {step}"
        if detail:
            message += f" ({detail})"
        super().__init__(device_path, message)


class UnexpectedEraseError(EraseError):
    """Wraps an unanticipated exception raised inside one device's task."""

    kind = "unexpected-error"

    def __init__(self, device_path: str, cause: Exception):
        self.cause = cause
        super().__init__(device_path, f"unexpected error: {cause}")


class AggregateEraseError(ScrubError):
    """Raised by the engine when at least one device failed."""

    def __init__(self, report: "SanitizationReport"):
        self.report = report
        failures = report.failure_messages
        lines = "\n".join(f"  - {line}" for line in failures)
        super().__init__(f"Erasure failed for {len(failures)} device(s):\n{lines}")

    @property
    def failures(self):
        return self.report.failures
