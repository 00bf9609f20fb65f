"""diskscrub - type-aware disk sanitization engine."""

__version__ = "0.3.0"
