"""Append-only audit trail of detection and erasure actions.

An AuditTrail is created once per engine and handed to every component
explicitly. Each event is mirrored to the ``diskscrub.audit`` logger so the
console and the regular log file show the same history.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from diskscrub.core.logger import device_extra, get_logger

logger = get_logger("diskscrub.audit")

STARTED = "started"
INFO = "info"
WARNING = "warning"
SUCCESS = "success"
FAILED = "failed"

_LEVELS = {
    STARTED: logging.INFO,
    INFO: logging.INFO,
    SUCCESS: logging.INFO,
    WARNING: logging.WARNING,
    FAILED: logging.ERROR,
}


@dataclass(frozen=True)
class AuditEvent:
    """One audit trail entry."""
    action: str
    result: str
    detail: str = ""
    device: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        device = f" [{self.device}]" if self.device else ""
        return (
            f"[{self.timestamp.isoformat(timespec='seconds')}]{device} "
            f"action: {self.action} | result: {self.result} | detail: {self.detail}"
        )


class AuditTrail:
    """In-memory audit trail; base for file-backed trails."""

    def __init__(self):
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, action: str, result: str, detail: str = "",
               device: Optional[str] = None) -> AuditEvent:
        """Append an event and mirror it to the log."""
        event = AuditEvent(action=action, result=result, detail=detail, device=device)
        with self._lock:
            self._events.append(event)
            self._write(event)
        logger.log(
            _LEVELS.get(result, logging.INFO), event.format(), extra=device_extra(device)
        )
        return event

    def _write(self, event: AuditEvent):
        pass

    @property
    def events(self) -> List[AuditEvent]:
        with self._lock:
            return list(self._events)

    def for_device(self, device: str) -> List[AuditEvent]:
        return [e for e in self.events if e.device == device]


class FileAuditTrail(AuditTrail):
    """Audit trail that also appends every event to a text file."""

    def __init__(self, path: str):
        super().__init__()
        self.path = self._resolve_path(Path(path))

    @staticmethod
    def _resolve_path(path: Path) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            # Fallback to /tmp if the configured directory is not writable
            fallback = Path("/tmp/diskscrub-audit.log")
            logger.warning(f"Cannot create {path.parent}; audit trail at {fallback}")
            return fallback
        return path

    def _write(self, event: AuditEvent):
        try:
            with open(self.path, 'a') as f:
                f.write(event.format() + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit trail {self.path}: {e}")
