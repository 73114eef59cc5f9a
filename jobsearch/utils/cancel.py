from __future__ import annotations

import threading
from time import monotonic
from typing import Optional


class CancelToken:
    """
    Cancellation token carrying the global search deadline.

    A token is cancelled either explicitly (`cancel()`) or implicitly once its
    monotonic deadline passes. Adapters check `cancelled` at every suspension
    point and use `wait()` for pauses so that sleeping never outlives the
    deadline. Thread-safe.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self.deadline: Optional[float] = (
            None if timeout is None else monotonic() + max(0.0, float(timeout))
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and monotonic() >= self.deadline

    def remaining(self, cap: Optional[float] = None) -> Optional[float]:
        """
        Seconds left before the deadline, optionally clipped to `cap`.

        Returns None when there is neither a deadline nor a cap, and 0.0 once
        the token is cancelled.
        """
        if self._event.is_set():
            return 0.0
        left = None if self.deadline is None else max(0.0, self.deadline - monotonic())
        if cap is None:
            return left
        return float(cap) if left is None else min(float(cap), left)

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early on cancellation or deadline.

        Returns:
            True if the token is cancelled when the wait ends.
        """
        end = monotonic() + max(0.0, float(seconds))
        while not self.cancelled:
            left = end - monotonic()
            if left <= 0:
                break
            self._event.wait(self.remaining(left))
        return self.cancelled
