"""Wall-clock pacing for the 60 Hz CHIP-8 timers."""

from __future__ import annotations

import time
from typing import Callable

TIMER_FREQUENCY_HZ = 60.0


class TimerScheduler:
    """Calls ``tick`` once per elapsed timer period of real time.

    The scheduler does not know how many instructions run in between; the
    host calls :meth:`update` as often as it likes (typically once per frame).
    If the host falls behind, at most ``max_catch_up`` ticks are delivered per
    update and the remaining backlog is dropped.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        *,
        frequency_hz: float = TIMER_FREQUENCY_HZ,
        max_catch_up: int = 4,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        if frequency_hz <= 0:
            raise ValueError("frequency must be positive")
        if max_catch_up <= 0:
            raise ValueError("max_catch_up must be positive")
        self._tick = tick
        self._clock = clock
        self.frequency_hz = frequency_hz
        self.max_catch_up = max_catch_up
        self._period_ns = int(1_000_000_000 / frequency_hz)
        self._base_time_ns = clock()
        self.tick_count = 0

    @property
    def period_ns(self) -> int:
        return self._period_ns

    def reset(self) -> int:
        """Re-anchor the period boundary at the current time (e.g. after a pause)."""

        self._base_time_ns = self._clock()
        return self._base_time_ns

    def update(self) -> int:
        now = self._clock()
        due = (now - self._base_time_ns) // self._period_ns
        if due <= 0:
            return 0
        ticks = min(due, self.max_catch_up)
        for _ in range(ticks):
            self._tick()
        self.tick_count += ticks
        if due > ticks:
            self._base_time_ns = now
        else:
            self._base_time_ns += due * self._period_ns
        return ticks
