"""Delay/sound timer and scheduler tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pytest

from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.system.scheduler import TimerScheduler


@dataclass
class DummySound:
    signals: List[str] = field(default_factory=list)

    def signal_sound_start(self) -> None:
        self.signals.append("start")

    def signal_sound_stop(self) -> None:
        self.signals.append("stop")


@dataclass
class DummyHardware:
    display: object = None
    keyboard: object = None
    sound_processor: DummySound = field(default_factory=DummySound)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1_000_000_000)


def test_tick_decrements_by_one_and_saturates() -> None:
    cpu = Chip8CPU(DummyHardware())
    cpu.timers.delay = 2
    cpu.timers.sound = 0
    values = []
    for _ in range(4):
        cpu.tick_timers()
        values.append((cpu.timers.delay, cpu.timers.sound))
    assert values == [(1, 0), (0, 0), (0, 0), (0, 0)]
    assert cpu.hardware.sound_processor.signals == []


def test_sound_timer_reaching_zero_stops_once() -> None:
    cpu = Chip8CPU(DummyHardware())
    cpu.timers.sound = 2
    for _ in range(5):
        cpu.tick_timers()
    assert cpu.timers.sound == 0
    assert cpu.hardware.sound_processor.signals == ["stop"]


def test_cpu_without_sound_processor_still_ticks() -> None:
    class Bare:
        display = None
        keyboard = None

    cpu = Chip8CPU(Bare())
    cpu.timers.sound = 1
    cpu.tick_timers()
    assert cpu.timers.sound == 0


def test_scheduler_ticks_once_per_period() -> None:
    clock = FakeClock()
    ticks: List[int] = []
    scheduler = TimerScheduler(lambda: ticks.append(1), clock=clock)
    assert scheduler.update() == 0

    clock.advance(1 / 120)
    assert scheduler.update() == 0
    clock.advance(1 / 120)
    assert scheduler.update() == 1
    clock.advance(2.5 / 60)
    assert scheduler.update() == 2
    assert len(ticks) == 3
    assert scheduler.tick_count == 3


def test_scheduler_is_independent_of_update_rate() -> None:
    clock = FakeClock()
    ticks: List[int] = []
    scheduler = TimerScheduler(lambda: ticks.append(1), clock=clock)
    for _ in range(1000):
        clock.advance(1 / 6000)
        scheduler.update()
    assert len(ticks) in (9, 10)


def test_scheduler_caps_catch_up_and_drops_backlog() -> None:
    clock = FakeClock()
    ticks: List[int] = []
    scheduler = TimerScheduler(lambda: ticks.append(1), clock=clock, max_catch_up=4)
    clock.advance(1.0)
    assert scheduler.update() == 4
    assert scheduler.update() == 0
    clock.advance(1 / 60)
    assert scheduler.update() == 1


def test_scheduler_reset_reanchors_period() -> None:
    clock = FakeClock()
    ticks: List[int] = []
    scheduler = TimerScheduler(lambda: ticks.append(1), clock=clock)
    clock.advance(0.9 / 60)
    scheduler.reset()
    clock.advance(0.5 / 60)
    assert scheduler.update() == 0


@pytest.mark.parametrize("kwargs", [{"frequency_hz": 0}, {"max_catch_up": 0}])
def test_scheduler_rejects_invalid_configuration(kwargs) -> None:
    with pytest.raises(ValueError):
        TimerScheduler(lambda: None, **kwargs)
