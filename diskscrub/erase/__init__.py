"""Erasure strategies and their dispatcher."""
from diskscrub.erase.dispatcher import ErasureDispatcher, build_dispatcher
from diskscrub.erase.hdd import HDDOverwriteStrategy
from diskscrub.erase.ssd import SSDSecureEraseStrategy

__all__ = [
    'ErasureDispatcher',
    'build_dispatcher',
    'HDDOverwriteStrategy',
    'SSDSecureEraseStrategy',
]
