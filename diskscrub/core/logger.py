"""Console and file logging for diskscrub.

Console output goes to stderr through Rich so that ``--json`` output on
stdout stays machine readable. The optional file log carries the worker
thread and the device each record is about, which is what you need to
untangle several erase tasks writing to one log concurrently.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

LOG_DIR = Path("/var/log/diskscrub")
LOG_FILE = LOG_DIR / "diskscrub.log"
FALLBACK_LOG_FILE = Path("/tmp/diskscrub.log")

FILE_FORMAT = "%(asctime)s | %(threadName)s | %(device)s | %(levelname)s | %(name)s | %(message)s"
NO_DEVICE = "-"

_file_handler: Optional[logging.FileHandler] = None


class DeviceFilter(logging.Filter):
    """Guarantee a ``device`` attribute on every record.

    Pass it per call with ``extra={"device": "/dev/sda"}``; records that
    are not about one device show ``-``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "device", None):
            record.device = NO_DEVICE
        return True


def device_extra(device_path: Optional[str]) -> dict:
    """``extra`` mapping tagging a record with the device it concerns."""
    return {"device": device_path or NO_DEVICE}


def _writable_log_path(path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        FALLBACK_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        return FALLBACK_LOG_FILE
    return path


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Attach a file handler to the ``diskscrub`` logger tree.

    Args:
        log_file: Log path (default: ``DISKSCRUB_LOG_FILE`` or
            /var/log/diskscrub/diskscrub.log)
        verbose: Log at DEBUG instead of INFO

    Returns:
        Path of the log file actually in use; /tmp/diskscrub.log when the
        requested directory cannot be created
    """
    global _file_handler

    if _file_handler is not None:
        return Path(_file_handler.baseFilename)

    requested = Path(log_file or os.getenv("DISKSCRUB_LOG_FILE") or LOG_FILE)
    target = _writable_log_path(requested)
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.FileHandler(target)
    handler.setLevel(level)
    handler.addFilter(DeviceFilter())
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    package_logger = logging.getLogger("diskscrub")
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith("diskscrub.") and isinstance(existing, logging.Logger):
            existing.setLevel(level)
    _file_handler = handler

    package_logger.info(f"diskscrub file log: {target}")
    return target


def get_logger(name: str) -> logging.Logger:
    """Logger with the shared Rich stderr handler attached once."""
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
