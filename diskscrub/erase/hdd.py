"""Three-pass destructive overwrite for rotational media."""
from typing import Optional

from diskscrub.core.audit import FAILED, STARTED, SUCCESS, AuditTrail
from diskscrub.core.cancellation import CancelToken
from diskscrub.core.config import DEFAULT_BLOCK_SIZE
from diskscrub.erase.overwrite import Pattern, overwrite_extent
from diskscrub.models.errors import CapacityQueryFailure, PassFailure, ToolUnavailableError
from diskscrub.services.disk_tools import DiskTools

# DoD 5220.22-M style sequence: random, zeros, random
PASS_PATTERNS = (Pattern.RANDOM, Pattern.ZERO, Pattern.RANDOM)


class HDDOverwriteStrategy:
    """Overwrites an HDD three times; passes are strictly sequential.

    A failing pass aborts the strategy at once. Passes are never retried,
    skipped or reordered.
    """

    def __init__(self, tools: DiskTools, audit: AuditTrail,
                 cancel_token: Optional[CancelToken] = None,
                 block_size: int = DEFAULT_BLOCK_SIZE):
        self.tools = tools
        self.audit = audit
        self.cancel_token = cancel_token or CancelToken()
        self.block_size = block_size

    def sanitize_hdd(self, device_path: str):
        """Run all three passes over ``device_path``.

        Raises:
            CapacityQueryFailure: If the capacity query fails or returns 0
            PassFailure: If any overwrite pass fails
            ErasureCancelled: If cancellation was requested between passes
        """
        total = len(PASS_PATTERNS)
        self.audit.record(
            "hdd overwrite", STARTED,
            f"{total}-pass overwrite (random, zero, random)", device=device_path,
        )

        for number, pattern in enumerate(PASS_PATTERNS, start=1):
            self.cancel_token.check(device_path, f"overwrite pass {number}/{total}")
            capacity = self._capacity(device_path)

            self.audit.record(
                f"pass {number}/{total}", STARTED,
                f"writing {pattern.value} data over {capacity} bytes", device=device_path,
            )
            try:
                result = overwrite_extent(
                    self.tools, device_path, pattern, capacity, self.block_size
                )
            except ToolUnavailableError as e:
                self.audit.record(f"pass {number}/{total}", FAILED, str(e), device=device_path)
                raise PassFailure(device_path, number, pattern.value, str(e)) from e

            if not result.ok:
                self.audit.record(
                    f"pass {number}/{total}", FAILED, result.diagnostic, device=device_path
                )
                raise PassFailure(device_path, number, pattern.value, result.diagnostic)

            self.audit.record(f"pass {number}/{total}", SUCCESS, device=device_path)

        self.audit.record("hdd overwrite", SUCCESS, "all passes completed", device=device_path)

    def _capacity(self, device_path: str) -> int:
        try:
            capacity = self.tools.capacity(device_path)
        except ToolUnavailableError as e:
            self.audit.record("capacity query", FAILED, str(e), device=device_path)
            raise CapacityQueryFailure(device_path, f"capacity query failed: {e}") from e

        if capacity <= 0:
            self.audit.record("capacity query", FAILED, "capacity is zero", device=device_path)
            raise CapacityQueryFailure(device_path, "capacity query returned no usable size")
        return capacity
