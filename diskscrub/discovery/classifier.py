"""Turns enumeration and identify output into classified disk descriptors."""
from typing import List, Optional, Tuple

from diskscrub.core.audit import FAILED, INFO, STARTED, SUCCESS, WARNING, AuditTrail
from diskscrub.core.logger import get_logger
from diskscrub.models.disk import DescriptorSource, DiskDescriptor, MediaType, Transport
from diskscrub.models.errors import DetectionFailure, NoDevicesDetected, ToolUnavailableError
from diskscrub.services.disk_tools import DiskTools

logger = get_logger(__name__)

SOLID_STATE_VALUE = "Solid State Device"
OUTPUT_SSD_MARKERS = ("Solid State", "SSD", "Flash")
MODEL_SSD_KEYWORDS = ("ssd", "solid", "flash", "nvme")
MODEL_HDD_KEYWORDS = ("hdd", "hard drive", "harddisk")
NVME_MODEL_LABELS = ("mn", "Model Number")


def split_label(line: str) -> Tuple[str, Optional[str]]:
    """Split ``label : value`` into its stripped parts (value None if no colon)."""
    if ":" not in line:
        return line.strip(), None
    label, value = line.split(":", 1)
    return label.strip(), value.strip()


def parse_nvme_model(output: str) -> Optional[str]:
    """Return the first model-number value from ``nvme id-ctrl`` output."""
    for line in output.splitlines():
        label, value = split_label(line)
        if value and label in NVME_MODEL_LABELS:
            return value
    return None


def parse_ata_identify(output: str) -> Tuple[Optional[str], Optional[str]]:
    """Return the first (model, rotation rate) values from ``hdparm -I`` output."""
    model = None
    rotation = None
    for line in output.splitlines():
        label, value = split_label(line)
        if value is None:
            continue
        if model is None and label == "Model Number" and value:
            model = value
        elif rotation is None and label.endswith("Rotation Rate") and value:
            rotation = value
    return model, rotation


def classify_media(output: str, model: str, rotation: Optional[str]) -> MediaType:
    """Decide the media type; the first matching rule wins.

    1. rotation rate says solid state
    2. rotation rate is a positive number
    3. the identify output mentions a solid-state/flash marker
    4. the model name mentions an SSD or HDD keyword
    5. unknown
    """
    if rotation is not None:
        if rotation == SOLID_STATE_VALUE:
            return MediaType.SSD
        if rotation.isascii() and rotation.isdecimal() and int(rotation) > 0:
            return MediaType.HDD

    if any(marker in output for marker in OUTPUT_SSD_MARKERS):
        return MediaType.SSD

    model_lower = model.lower()
    if any(keyword in model_lower for keyword in MODEL_SSD_KEYWORDS):
        return MediaType.SSD
    if any(keyword in model_lower for keyword in MODEL_HDD_KEYWORDS):
        return MediaType.HDD

    return MediaType.UNKNOWN


class DeviceClassifier:
    """Builds a fresh list of disk descriptors on every call to detect()."""

    def __init__(self, tools: DiskTools, audit: AuditTrail):
        self.tools = tools
        self.audit = audit

    def detect(self) -> List[DiskDescriptor]:
        """Enumerate and classify every whole-disk device.

        Returns:
            Descriptors in enumeration order, unique by device path

        Raises:
            NoDevicesDetected: If enumeration fails or finds no devices
        """
        self.audit.record("device detection", STARTED, "enumerating block devices")

        try:
            entries = self.tools.list_block_devices()
        except DetectionFailure as e:
            self.audit.record("device detection", FAILED, str(e))
            raise NoDevicesDetected(f"Device enumeration failed: {e}") from e

        descriptors: List[DiskDescriptor] = []
        seen = set()
        for name, hint in entries:
            device_path = f"/dev/{name}"
            if device_path in seen:
                logger.debug(f"Skipping duplicate enumeration entry {device_path}")
                continue
            seen.add(device_path)
            descriptors.append(self.classify(name, hint))

        if not descriptors:
            self.audit.record("device detection", FAILED, "no devices detected")
            raise NoDevicesDetected("No block devices detected")

        self.audit.record(
            "device detection", SUCCESS, f"{len(descriptors)} device(s) detected"
        )
        return descriptors

    def classify(self, name: str, transport_hint: Optional[str] = None) -> DiskDescriptor:
        """Classify one enumerated device; never raises for query failures."""
        if name.startswith("nvme"):
            return self._classify_nvme(name)
        return self._classify_ata(name, transport_hint)

    def _classify_nvme(self, name: str) -> DiskDescriptor:
        device_path = f"/dev/{name}"
        placeholder = f"NVMe Drive {name}"
        self.audit.record("nvme identify", INFO, "querying controller", device=device_path)

        output = self._query(self.tools.nvme_identify, name, device_path)
        model = parse_nvme_model(output) if output else None

        # NVMe media is flash regardless of what the controller reports
        return DiskDescriptor(
            device_path=device_path,
            model=model or placeholder,
            media_type=MediaType.SSD,
            transport=Transport.NVME,
            source=DescriptorSource.DETECTED if output else DescriptorSource.PLACEHOLDER,
        )

    def _classify_ata(self, name: str, transport_hint: Optional[str]) -> DiskDescriptor:
        device_path = f"/dev/{name}"
        placeholder = f"Disk {name}"
        transport = Transport.from_hint(transport_hint)
        self.audit.record("ata identify", INFO, "querying device", device=device_path)

        output = self._query(self.tools.ata_identify, name, device_path)
        if not output:
            return DiskDescriptor(
                device_path=device_path,
                model=placeholder,
                media_type=MediaType.UNKNOWN,
                transport=transport,
                source=DescriptorSource.PLACEHOLDER,
            )

        model, rotation = parse_ata_identify(output)
        model = model or placeholder
        media_type = classify_media(output, model, rotation)
        if media_type is MediaType.UNKNOWN:
            self.audit.record(
                "classification", WARNING, "media type could not be determined",
                device=device_path,
            )

        return DiskDescriptor(
            device_path=device_path,
            model=model,
            media_type=media_type,
            transport=transport,
        )

    def _query(self, query, name: str, device_path: str) -> str:
        """Run an identify query, returning '' when it produced nothing usable."""
        try:
            result = query(name)
        except ToolUnavailableError as e:
            self.audit.record("identify", WARNING, str(e), device=device_path)
            return ""

        if not result.stdout.strip():
            self.audit.record(
                "identify", WARNING, f"no usable output: {result.diagnostic}",
                device=device_path,
            )
            return ""
        return result.stdout

    @staticmethod
    def synthesized_devices() -> List[DiskDescriptor]:
        """Demo hardware for mock runs; every entry is marked SYNTHESIZED."""
        return [
            DiskDescriptor(
                device_path="/dev/sda",
                model="Samsung SSD 970 EVO Plus 1TB",
                media_type=MediaType.SSD,
                transport=Transport.SATA,
                source=DescriptorSource.SYNTHESIZED,
            ),
            DiskDescriptor(
                device_path="/dev/sdb",
                model="WD Blue 2TB",
                media_type=MediaType.HDD,
                transport=Transport.SATA,
                source=DescriptorSource.SYNTHESIZED,
            ),
            DiskDescriptor(
                device_path="/dev/nvme0n1",
                model="Samsung PM9A1 NVMe 512GB",
                media_type=MediaType.SSD,
                transport=Transport.NVME,
                source=DescriptorSource.SYNTHESIZED,
            ),
        ]
