"""Hold-to-quit gesture."""

import time
from collections.abc import Callable

HOLD_THRESHOLD_SECONDS = 1.0
HOLD_SLACK_SECONDS = 0.6


class QuitGesture:
    """Detects the quit key being held down for ``threshold`` seconds.

    Terminals report a held key as a stream of repeated presses, so the hold
    counts as released once no press has been seen for ``slack`` seconds.
    After firing, the gesture stays spent until the key is released.
    """

    def __init__(
        self,
        threshold: float = HOLD_THRESHOLD_SECONDS,
        slack: float = HOLD_SLACK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = threshold
        self.slack = slack
        self._clock = clock
        self._enabled = True
        self._fired = False
        self.hold_start: float | None = None
        self.last_key_time: float | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if not value:
            self.reset()
            self._fired = False
        self._enabled = value

    def reset(self) -> None:
        """Forget the current hold."""
        self.hold_start = None
        self.last_key_time = None

    def _idle(self, now: float) -> bool:
        return self.last_key_time is None or now - self.last_key_time > self.slack

    def on_key_held(self, now: float | None = None) -> None:
        """Record one observed press of the quit key."""
        if not self._enabled:
            return
        now = self._clock() if now is None else now
        if self._fired:
            if self._idle(now):
                self._fired = False
            else:
                self.last_key_time = now
                return
        if self.hold_start is None or self._idle(now):
            self.hold_start = now
        self.last_key_time = now

    def tick(self, now: float | None = None) -> tuple[bool, float | None]:
        """Advance one frame. Returns (should_quit, progress in [0, 1] or None)."""
        if not self._enabled:
            return False, None
        now = self._clock() if now is None else now
        if self._fired:
            if self._idle(now):
                self._fired = False
                self.reset()
            return False, None
        if self.hold_start is None:
            return False, None
        if self._idle(now):
            self.reset()
            return False, None
        elapsed = now - self.hold_start
        if elapsed >= self.threshold:
            self._fired = True
            self.hold_start = None
            return True, 1.0
        return False, min(elapsed / self.threshold, 1.0)
