import time
from typing import Callable, Optional


class GameClock:
    """Countdown clock for one period.

    The clock is polled rather than driven by a fixed-interval timer: every
    ``tick()`` measures the real time elapsed since the last whole second was
    consumed and carries the fractional remainder forward, so a client that
    is backgrounded (or a server process that restarts) neither loses nor
    double counts time. It knows nothing about basketball rules; reaching
    zero while running stops the clock and calls ``on_period_end`` once.
    """

    def __init__(self, seconds: int, now: Callable[[], float] = time.monotonic,
                 on_period_end: Optional[Callable[[], None]] = None, quarter: int = 1):
        if seconds < 0:
            raise ValueError('clock seconds cannot be negative')
        self.period_seconds = int(seconds)
        self.quarter = quarter
        self.on_period_end = on_period_end
        self._now = now
        self._seconds = int(seconds)
        self._running = False
        self._anchor: Optional[float] = None
        # part of a second that had elapsed when the clock was last paused
        self._carry = 0.0
        self._expired_fired = False

    @property
    def seconds_remaining(self) -> int:
        return self._seconds

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def anchor(self) -> Optional[float]:
        return self._anchor

    def start(self) -> None:
        if self._running or self._seconds <= 0:
            return
        self._running = True
        self._anchor = self._now() - self._carry
        self._carry = 0.0

    def pause(self) -> None:
        if not self._running:
            return
        self.tick()
        if not self._running:
            return
        self._carry = self._now() - self._anchor
        self._running = False
        self._anchor = None

    def reset(self, seconds: Optional[int] = None) -> None:
        self.set_time(self.period_seconds if seconds is None else seconds)

    def set_time(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError('clock seconds cannot be negative')
        self._seconds = int(seconds)
        self._carry = 0.0
        self._expired_fired = False
        if self._running:
            if self._seconds == 0:
                self._running = False
                self._anchor = None
            else:
                self._anchor = self._now()

    def set_quarter(self, quarter: int) -> None:
        self.quarter = quarter

    def tick(self) -> bool:
        """Consume elapsed whole seconds; True when this call ended the period."""
        if not self._running:
            return False
        now = self._now()
        elapsed = int(now - self._anchor)
        if elapsed <= 0:
            return False
        consumed = min(elapsed, self._seconds)
        self._seconds -= consumed
        self._anchor += elapsed
        if self._seconds > 0:
            return False
        self._running = False
        self._anchor = None
        if self._expired_fired:
            return False
        self._expired_fired = True
        if self.on_period_end is not None:
            self.on_period_end()
        return True

    def seconds_until_expiry(self) -> Optional[float]:
        if not self._running:
            return None
        return max(0.0, self._anchor + self._seconds - self._now())

    def snapshot(self) -> dict:
        return {
            'seconds': self._seconds,
            'running': self._running,
            'anchor': self._anchor,
            'carry': self._carry,
            'quarter': self.quarter,
        }

    def restore(self, seconds: int, running: bool = False, anchor: Optional[float] = None,
                carry: float = 0.0) -> None:
        """Rehydrate persisted state; a running clock catches up on the next tick."""
        self._seconds = int(seconds)
        self._carry = 0.0 if running else float(carry or 0.0)
        self._expired_fired = False
        self._running = bool(running) and self._seconds > 0
        if self._running:
            self._anchor = anchor if anchor is not None else self._now()
        else:
            self._anchor = None

    @staticmethod
    def format(seconds: int) -> str:
        return f'{seconds // 60}:{seconds % 60:02d}'
