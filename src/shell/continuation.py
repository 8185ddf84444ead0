"""
One-shot continuation slot.

Holds "resume this interrupted action later". take_and_clear() empties the slot
in the same step that hands the callback out, so a continuation runs at most
once no matter how often the owning rule is re-evaluated.
"""
from typing import Callable, Optional

Continuation = Callable[[], None]


class PendingContinuation:
    """Optional callback with set / take_and_clear semantics."""

    def __init__(self):
        self._callback: Optional[Continuation] = None

    @property
    def is_set(self) -> bool:
        return self._callback is not None

    def set(self, callback: Optional[Continuation]) -> None:
        self._callback = callback

    def clear(self) -> None:
        self._callback = None

    def take_and_clear(self) -> Optional[Continuation]:
        callback, self._callback = self._callback, None
        return callback

    def run_once(self) -> bool:
        """Invoke the pending callback, if any. Returns whether one ran."""
        callback = self.take_and_clear()
        if callback is None:
            return False
        callback()
        return True
