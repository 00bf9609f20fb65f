"""Erasure task lifecycle and run-level report models."""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from diskscrub.models.disk import DiskDescriptor
from diskscrub.models.errors import EraseError, TaskStateError


class TaskStatus(Enum):
    """Erasure task state."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


@dataclass(frozen=True)
class DeviceOutcome:
    """Read-only result of one device's sanitization attempt."""
    device_path: str
    status: TaskStatus
    error: Optional[EraseError] = None
    descriptor: Optional[DiskDescriptor] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status is TaskStatus.SUCCEEDED

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict:
        return {
            'device_path': self.device_path,
            'status': self.status.value,
            'error': str(self.error) if self.error else None,
            'error_kind': self.error.kind if self.error else None,
            'model': self.descriptor.model if self.descriptor else None,
            'duration': self.duration,
        }


class ErasureTask:
    """One device's sanitization attempt.

    The terminal state is set exactly once. Any transition after that
    raises TaskStateError so a late writer cannot rewrite an outcome that
    has already been reported.
    """

    def __init__(self, device_path: str, descriptor: Optional[DiskDescriptor] = None):
        self.device_path = device_path
        self.descriptor = descriptor
        self.status = TaskStatus.PENDING
        self.error: Optional[EraseError] = None
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self._lock = threading.Lock()

    def start(self):
        with self._lock:
            if self.status is not TaskStatus.PENDING:
                raise TaskStateError(
                    f"{self.device_path}: cannot start task in state {self.status.value}"
                )
            self.status = TaskStatus.IN_PROGRESS
            self.started_at = datetime.now()

    def succeed(self):
        with self._lock:
            if self.status is not TaskStatus.IN_PROGRESS:
                raise TaskStateError(
                    f"{self.device_path}: cannot succeed task in state {self.status.value}"
                )
            self.status = TaskStatus.SUCCEEDED
            self.finished_at = datetime.now()

    def fail(self, error: EraseError):
        """Mark the task failed. Allowed from PENDING (e.g. device not found)."""
        with self._lock:
            if self.status.is_terminal:
                raise TaskStateError(
                    f"{self.device_path}: task already finished as {self.status.value}"
                )
            self.status = TaskStatus.FAILED
            self.error = error
            self.finished_at = datetime.now()

    def outcome(self) -> DeviceOutcome:
        with self._lock:
            if not self.status.is_terminal:
                raise TaskStateError(
                    f"{self.device_path}: task has not finished ({self.status.value})"
                )
            return DeviceOutcome(
                device_path=self.device_path,
                status=self.status,
                error=self.error,
                descriptor=self.descriptor,
                started_at=self.started_at,
                finished_at=self.finished_at,
            )


@dataclass
class SanitizationReport:
    """Per-device outcomes of one run, in the order the paths were requested."""
    outcomes: List[DeviceOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failures(self) -> List[DeviceOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def successes(self) -> List[DeviceOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failure_messages(self) -> List[str]:
        return [str(o.error) if o.error else f"{o.device_path}: failed" for o in self.failures]

    def outcome_for(self, device_path: str) -> Optional[DeviceOutcome]:
        for outcome in self.outcomes:
            if outcome.device_path == device_path:
                return outcome
        return None

    def summary(self) -> str:
        """Human-readable aggregate describing every device."""
        lines = [
            f"Sanitization report: {len(self.successes)} succeeded, "
            f"{len(self.failures)} failed"
        ]
        if self.cancelled:
            lines.append("Run was cancelled; remaining steps were not issued.")
        for outcome in self.outcomes:
            if outcome.succeeded:
                lines.append(f"  [OK]     {outcome.device_path}")
            else:
                lines.append(f"  [FAILED] {outcome.error or outcome.device_path}")
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        return {
            'succeeded': self.succeeded,
            'cancelled': self.cancelled,
            'outcomes': [o.to_dict() for o in self.outcomes],
        }
