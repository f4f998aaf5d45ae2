"""
CHIP-8 VM — Delay / Sound Timer Pair

Two independent 8-bit down-counters decaying at 60 Hz of *wall-clock*
time, independent of how fast the interpreter steps.

tick() is called by the driver as often as it likes. Elapsed time since
the previous tick is added to an accumulator; once the accumulator holds
at least one period (1/60 s) one period is subtracted and each non-zero
counter drops by one. The remainder is carried forward so a driver that
ticks slightly late never drifts. At most one decrement happens per tick.

Time is kept in integer nanoseconds so the period threshold is exact.
"""

import logging
import time
from typing import Callable

from ..config import TIMER_HZ

log = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000


class Timers:
    """Delay + sound timer pair.

    Args:
        clock: Callable returning monotonic nanoseconds. Tests pass a
               fake clock; the default is time.monotonic_ns.
        hz:    Decay rate.
    """

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns,
                 hz: int = TIMER_HZ):
        self._clock = clock
        self.period_ns = NS_PER_SECOND // hz
        self._delay = 0
        self._sound = 0
        self._accum = 0
        self._last = clock()

    # --- Opcode access ---

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int):
        self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int):
        value &= 0xFF
        if value and not self._sound:
            log.debug("Sound timer started (%d ticks)", value)
        self._sound = value

    @property
    def sound_active(self) -> bool:
        """True while the buzzer would be sounding."""
        return self._sound > 0

    # --- Real-time decay ---

    def tick(self) -> bool:
        """Advance by the wall time elapsed since the previous tick.

        Returns True if a 60 Hz period boundary was crossed.
        """
        now = self._clock()
        self._accum += now - self._last
        self._last = now

        if self._accum < self.period_ns:
            return False

        self._accum -= self.period_ns
        if self._delay > 0:
            self._delay -= 1
        if self._sound > 0:
            self._sound -= 1
            if not self._sound:
                log.debug("Sound timer expired")
        return True

    @property
    def pending_ns(self) -> int:
        """Accumulated time not yet converted into a decrement."""
        return self._accum

    def reset(self):
        """Zero both counters and restart the wall-clock reference."""
        self._delay = 0
        self._sound = 0
        self._accum = 0
        self._last = self._clock()
