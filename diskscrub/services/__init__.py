"""Wrappers around the external disk tooling."""
from diskscrub.services.disk_tools import CommandResult, DiskTools

__all__ = ['CommandResult', 'DiskTools']
