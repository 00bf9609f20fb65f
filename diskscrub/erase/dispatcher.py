"""Routes a classified descriptor to its erasure strategy."""
from typing import Optional

from diskscrub.core.audit import INFO, AuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.config import ScrubConfig
from diskscrub.erase.hdd import HDDOverwriteStrategy
from diskscrub.erase.ssd import SSDSecureEraseStrategy
from diskscrub.models.disk import DiskDescriptor, MediaType
from diskscrub.models.errors import ClassificationAmbiguity, SynthesizedDeviceRefused
from diskscrub.services.disk_tools import DiskTools


class ErasureDispatcher:
    """Pure routing on media type; never guesses a method for unknown media."""

    def __init__(self, hdd: HDDOverwriteStrategy, ssd: SSDSecureEraseStrategy,
                 audit: AuditTrail, allow_synthesized: bool = False):
        self.hdd = hdd
        self.ssd = ssd
        self.audit = audit
        self.allow_synthesized = allow_synthesized

    def dispatch(self, descriptor: DiskDescriptor):
        """Run the strategy for ``descriptor``.

        Raises:
            SynthesizedDeviceRefused: For demo descriptors outside mock runs
            ClassificationAmbiguity: If the media type is unknown
            EraseError: Whatever the selected strategy raises
        """
        device_path = descriptor.device_path

        if descriptor.is_synthesized and not self.allow_synthesized:
            raise SynthesizedDeviceRefused(device_path)

        if descriptor.media_type is MediaType.HDD:
            self.audit.record(
                "dispatch", INFO, "HDD detected; using 3-pass overwrite", device=device_path
            )
            self.hdd.sanitize_hdd(device_path)
        elif descriptor.media_type is MediaType.SSD:
            self.audit.record(
                "dispatch", INFO,
                f"SSD detected ({descriptor.transport.value}); using secure erase",
                device=device_path,
            )
            self.ssd.sanitize_ssd(device_path, descriptor.transport)
        else:
            # MediaType.UNKNOWN, and any media type added later, is refused
            raise ClassificationAmbiguity(device_path)


def build_dispatcher(tools: DiskTools, audit: AuditTrail, config: ScrubConfig,
                     cancel_token: Optional[CancelToken] = None) -> ErasureDispatcher:
    """Wire both strategies to one tool layer, audit trail and cancel token."""
    cancel_token = cancel_token or CancelToken()
    hdd = HDDOverwriteStrategy(tools, audit, cancel_token, block_size=config.block_size)
    ssd = SSDSecureEraseStrategy(
        tools, audit, cancel_token,
        password=config.security_password,
        block_size=config.block_size,
    )
    return ErasureDispatcher(hdd, ssd, audit, allow_synthesized=config.mock)
