"""Physical disk models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class MediaType(Enum):
    """Storage technology class."""
    SSD = "ssd"
    HDD = "hdd"
    UNKNOWN = "unknown"


class Transport(Enum):
    """Interconnect reported by the enumeration tool."""
    SATA = "sata"
    USB = "usb"
    NVME = "nvme"
    UNKNOWN = "unknown"

    @classmethod
    def from_hint(cls, hint: Optional[str]) -> "Transport":
        """Map an lsblk TRAN column value to a transport."""
        if not hint:
            return cls.UNKNOWN
        value = hint.strip().lower()
        if value in ("sata", "ata"):
            return cls.SATA
        if value == "usb":
            return cls.USB
        if value == "nvme":
            return cls.NVME
        return cls.UNKNOWN


class DescriptorSource(Enum):
    """Where a descriptor's data came from."""
    DETECTED = "detected"
    PLACEHOLDER = "placeholder"   # enumerated, info query unusable
    SYNTHESIZED = "synthesized"   # demo hardware, never a real device


@dataclass(frozen=True)
class DiskDescriptor:
    """Represents one classified physical disk."""
    device_path: str          # /dev/sda
    model: str                # Manufacturer model or placeholder
    media_type: MediaType     # SSD/HDD/UNKNOWN
    transport: Transport      # SATA/USB/NVME/UNKNOWN
    source: DescriptorSource = DescriptorSource.DETECTED

    @property
    def name(self) -> str:
        """Kernel device name without the /dev/ prefix."""
        return self.device_path.rsplit("/", 1)[-1]

    @property
    def identity(self) -> Tuple[str, MediaType, Transport]:
        """Fields that must be stable across detection passes."""
        return (self.device_path, self.media_type, self.transport)

    @property
    def is_synthesized(self) -> bool:
        return self.source is DescriptorSource.SYNTHESIZED

    def to_dict(self) -> dict:
        return {
            'device_path': self.device_path,
            'model': self.model,
            'media_type': self.media_type.value,
            'transport': self.transport.value,
            'source': self.source.value,
        }
