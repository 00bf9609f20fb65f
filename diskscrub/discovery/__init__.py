"""Device detection and classification."""
from diskscrub.discovery.classifier import DeviceClassifier

__all__ = ['DeviceClassifier']
