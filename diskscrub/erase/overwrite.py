"""Full-extent pattern overwrite shared by the HDD passes and the block wipe."""
from enum import Enum

from diskscrub.services.disk_tools import RANDOM_SOURCE, ZERO_SOURCE, CommandResult, DiskTools


class Pattern(Enum):
    """Overwrite pattern and the device it is read from."""
    RANDOM = "random"
    ZERO = "zero"

    @property
    def source(self) -> str:
        return RANDOM_SOURCE if self is Pattern.RANDOM else ZERO_SOURCE


def overwrite_extent(tools: DiskTools, device_path: str, pattern: Pattern,
                     capacity: int, block_size: int) -> CommandResult:
    """Overwrite every byte in ``[0, capacity)`` with ``pattern``.

    Whole blocks are streamed first; the trailing partial block, if any, is
    written by a second transfer positioned at its byte offset.

    Returns:
        The first failing CommandResult, or the last one if all succeeded

    Raises:
        ToolUnavailableError: If dd cannot be executed
    """
    full_blocks, tail = divmod(capacity, block_size)
    result = CommandResult(returncode=0)

    if full_blocks:
        result = tools.write_blocks(device_path, pattern.source, block_size, full_blocks)
        if not result.ok:
            return result

    if tail:
        result = tools.write_blocks(
            device_path, pattern.source, tail, 1, offset=full_blocks * block_size
        )

    return result
