"""Cooperative cancellation shared by every task of one erase run."""
import threading

from diskscrub.models.errors import ErasureCancelled


class CancelToken:
    """Cancellation signal checked between discrete destructive steps.

    A command that has already been issued is never interrupted; the token
    only stops the next step from starting.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self, device_path: str, step: str, detail: str = ""):
        """Raise ErasureCancelled if cancellation was requested.

        Args:
            device_path: Device whose task is asking
            step: The step that is about to start
            detail: Extra context for the cancellation message
        """
        if self._event.is_set():
            raise ErasureCancelled(device_path, step, detail)
