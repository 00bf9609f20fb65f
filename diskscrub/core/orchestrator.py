"""Concurrent multi-device erasure with per-device failure isolation."""
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Optional

from diskscrub.core.audit import FAILED, STARTED, SUCCESS, WARNING, AuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.logger import device_extra, get_logger
from diskscrub.erase.dispatcher import ErasureDispatcher
from diskscrub.models.disk import DiskDescriptor
from diskscrub.models.errors import DeviceNotFound, EraseError, UnexpectedEraseError
from diskscrub.models.task import ErasureTask, SanitizationReport

logger = get_logger(__name__)


class SanitizationOrchestrator:
    """Fans the dispatcher out over target devices, one task per device."""

    def __init__(self, dispatcher: ErasureDispatcher, descriptors: Iterable[DiskDescriptor],
                 audit: AuditTrail, cancel_token: Optional[CancelToken] = None,
                 max_workers: Optional[int] = None):
        """Initialize the orchestrator.

        Args:
            dispatcher: Dispatcher shared by all tasks (stateless routing)
            descriptors: Detected devices; read-only for the whole run
            audit: Audit trail for run-level events
            cancel_token: Token checked before each task starts
            max_workers: Worker pool bound (default: one per resolvable device)
        """
        self.dispatcher = dispatcher
        self.descriptors: Dict[str, DiskDescriptor] = {
            d.device_path: d for d in descriptors
        }
        self.audit = audit
        self.cancel_token = cancel_token or CancelToken()
        self.max_workers = max_workers

    def run(self, target_paths: List[str]) -> SanitizationReport:
        """Erase every target concurrently and report each outcome.

        Always returns a report; failures are recorded per device and never
        stop or alter other tasks.

        Returns:
            SanitizationReport with one outcome per distinct requested path, in order
        """
        self.audit.record(
            "erase run", STARTED, f"targets: {', '.join(target_paths) or '(none)'}"
        )

        unique_paths = list(dict.fromkeys(target_paths))
        if len(unique_paths) != len(target_paths):
            self.audit.record(
                "erase run", WARNING, "duplicate target paths ignored; each device is erased once"
            )

        tasks = [
            ErasureTask(path, self.descriptors.get(path)) for path in unique_paths
        ]
        runnable = []
        for task in tasks:
            if task.descriptor is None:
                error = DeviceNotFound(task.device_path)
                self.audit.record("resolve", FAILED, error.message, device=task.device_path)
                task.fail(error)
            else:
                runnable.append(task)

        if runnable:
            workers = self.max_workers or len(runnable)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="erase") as pool:
                futures = [pool.submit(self._execute, task) for task in runnable]
                wait(futures)

        report = SanitizationReport(
            outcomes=[task.outcome() for task in tasks],
            cancelled=self.cancel_token.cancelled,
        )

        if report.succeeded:
            self.audit.record("erase run", SUCCESS, f"{len(report.outcomes)} device(s) erased")
        else:
            self.audit.record("erase run", FAILED, "; ".join(report.failure_messages))
        return report

    def _execute(self, task: ErasureTask):
        """Run one device's pipeline; every exception ends in this task's slot."""
        device_path = task.device_path
        try:
            self.cancel_token.check(device_path, "erasure start")
            task.start()
            self.audit.record("erase device", STARTED, task.descriptor.model, device=device_path)
            self.dispatcher.dispatch(task.descriptor)
        except EraseError as e:
            self.audit.record("erase device", FAILED, e.message, device=device_path)
            task.fail(e)
        except Exception as e:
            logger.exception(
                f"Unexpected error while erasing {device_path}", extra=device_extra(device_path)
            )
            error = UnexpectedEraseError(device_path, e)
            self.audit.record("erase device", FAILED, error.message, device=device_path)
            task.fail(error)
        else:
            self.audit.record("erase device", SUCCESS, "device sanitized", device=device_path)
            task.succeed()
