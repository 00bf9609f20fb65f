"""Data models for diskscrub."""
from diskscrub.models.disk import DescriptorSource, DiskDescriptor, MediaType, Transport
from diskscrub.models.errors import (
    AggregateEraseError,
    CapacityQueryFailure,
    ChainStepFailure,
    ClassificationAmbiguity,
    ConfigError,
    DetectionFailure,
    DeviceNotFound,
    EraseError,
    ErasureCancelled,
    NoDevicesDetected,
    PassFailure,
    ScrubError,
    SynthesizedDeviceRefused,
    TaskStateError,
    ToolUnavailableError,
    UnexpectedEraseError,
)
from diskscrub.models.task import DeviceOutcome, ErasureTask, SanitizationReport, TaskStatus

__all__ = [
    'DescriptorSource',
    'DiskDescriptor',
    'MediaType',
    'Transport',
    'AggregateEraseError',
    'CapacityQueryFailure',
    'ChainStepFailure',
    'ClassificationAmbiguity',
    'ConfigError',
    'DetectionFailure',
    'DeviceNotFound',
    'EraseError',
    'ErasureCancelled',
    'NoDevicesDetected',
    'PassFailure',
    'ScrubError',
    'SynthesizedDeviceRefused',
    'TaskStateError',
    'ToolUnavailableError',
    'UnexpectedEraseError',
    'DeviceOutcome',
    'ErasureTask',
    'SanitizationReport',
    'TaskStatus',
]
