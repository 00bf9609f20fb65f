"""Engine facade exposed to the application shell."""
from typing import List, Optional

from diskscrub.core.audit import WARNING, AuditTrail, FileAuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.config import ScrubConfig, get_config
from diskscrub.core.logger import get_logger
from diskscrub.core.orchestrator import SanitizationOrchestrator
from diskscrub.discovery.classifier import DeviceClassifier
from diskscrub.erase.dispatcher import build_dispatcher
from diskscrub.models.disk import DiskDescriptor
from diskscrub.models.errors import AggregateEraseError, NoDevicesDetected
from diskscrub.models.task import SanitizationReport
from diskscrub.services.disk_tools import DiskTools

logger = get_logger(__name__)


class SanitizationEngine:
    """Detects devices, erases them and supports cancellation of a run.

    Detection is never cached: every call to ``list_devices`` or ``erase``
    queries the hardware again.
    """

    def __init__(self, config: Optional[ScrubConfig] = None,
                 tools: Optional[DiskTools] = None,
                 audit: Optional[AuditTrail] = None):
        self.config = config or get_config()
        self.tools = tools or DiskTools(use_sudo=self.config.use_sudo, mock=self.config.mock)
        self.audit = audit or FileAuditTrail(self.config.audit_log)
        self.classifier = DeviceClassifier(self.tools, self.audit)
        self._cancel_token = CancelToken()

    def list_devices(self) -> List[DiskDescriptor]:
        """Detect and classify the devices currently attached.

        Raises:
            NoDevicesDetected: If nothing was found and demo devices are not allowed
        """
        try:
            return self.classifier.detect()
        except NoDevicesDetected as e:
            if not (self.config.allow_synthesized or self.config.mock):
                raise
            self.audit.record(
                "device detection", WARNING,
                f"{e}; returning synthesized demo devices",
            )
            return self.classifier.synthesized_devices()

    def erase(self, device_paths: List[str]) -> SanitizationReport:
        """Erase the given devices concurrently.

        Returns:
            SanitizationReport when every device succeeded

        Raises:
            AggregateEraseError: Carrying the full report if any device failed
        """
        token = CancelToken()
        self._cancel_token = token

        try:
            descriptors = self.list_devices()
        except NoDevicesDetected as e:
            logger.warning(f"Detection found no devices: {e}")
            descriptors = []

        dispatcher = build_dispatcher(self.tools, self.audit, self.config, token)
        orchestrator = SanitizationOrchestrator(
            dispatcher,
            descriptors,
            self.audit,
            cancel_token=token,
            max_workers=self.config.max_workers,
        )
        report = orchestrator.run(list(device_paths))
        if token.cancelled:
            self.audit.record("cancel", WARNING, "run cancelled; remaining steps were not issued")

        if not report.succeeded:
            raise AggregateEraseError(report)
        return report

    def cancel(self):
        """Stop the active run from issuing further destructive steps.

        Safe to call from a signal handler: it only sets the run's token and
        takes no lock. The audit entry is written once the run returns.
        """
        self._cancel_token.cancel()
