"""Fx0A wait-for-key protocol tests."""

from __future__ import annotations

import pytest

from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.cpu.errors import MemoryAccessError
from chip8emu.cpu.state import KeyWaitState


def make_cpu(*words: int) -> Chip8CPU:
    hardware = Chip8Hardware()
    cpu = Chip8CPU(hardware)
    hardware.keyboard.add_release_listener(cpu.key_released)
    program = bytearray()
    for word in words:
        program += word.to_bytes(2, "big")
    cpu.load_program(program)
    return cpu


def test_fx0a_freezes_fetch_until_release() -> None:
    cpu = make_cpu(0xF50A, 0x6101)
    cpu.cycle()
    assert cpu.status.key_wait is KeyWaitState.AWAITING_KEY
    assert cpu.awaiting_key

    for _ in range(10):
        assert cpu.cycle() is None
    assert cpu.registers.program_counter == 0x202
    assert cpu.registers.v[1] == 0


def test_key_down_does_not_resolve_wait() -> None:
    cpu = make_cpu(0xF50A, 0x6101)
    cpu.cycle()
    cpu.hardware.keyboard.press(0x7)
    cpu.cycle()
    assert cpu.status.key_wait is KeyWaitState.AWAITING_KEY
    assert cpu.registers.program_counter == 0x202


def test_release_resolves_into_target_register_then_resumes() -> None:
    cpu = make_cpu(0xF50A, 0x6101, 0x6202)
    cpu.cycle()
    keyboard = cpu.hardware.keyboard
    keyboard.press(0xC)
    keyboard.release(0xC)
    assert cpu.status.key_wait is KeyWaitState.KEY_RESOLVED
    assert cpu.registers.v[5] == 0

    op = cpu.cycle()
    assert cpu.status.key_wait is KeyWaitState.RUNNING
    assert cpu.registers.v[5] == 0xC
    assert op is not None and op.word == 0x6101
    assert cpu.registers.v[1] == 0x01
    assert cpu.registers.program_counter == 0x204

    cpu.cycle()
    assert cpu.registers.v[2] == 0x02
    assert cpu.registers.v[5] == 0xC


def test_only_first_release_is_recorded() -> None:
    cpu = make_cpu(0xF30A, 0x1202)
    cpu.cycle()
    cpu.key_released(0x4)
    cpu.key_released(0x9)
    cpu.cycle()
    assert cpu.registers.v[3] == 0x4


def test_release_outside_wait_is_ignored() -> None:
    cpu = make_cpu(0x6101, 0x6202)
    cpu.key_released(0x3)
    assert cpu.status.key_wait is KeyWaitState.RUNNING
    cpu.cycle()
    cpu.cycle()
    assert cpu.registers.v[1] == 0x01
    assert cpu.registers.v[2] == 0x02
    assert cpu.registers.program_counter == 0x204


def test_timers_keep_ticking_while_waiting() -> None:
    cpu = make_cpu(0x6A05, 0xFA15, 0xF00A)
    for _ in range(3):
        cpu.cycle()
    assert cpu.awaiting_key
    cpu.tick_timers()
    cpu.tick_timers()
    assert cpu.timers.delay == 3


def test_faulting_fetch_after_release_keeps_key_pending() -> None:
    cpu = make_cpu()
    cpu.memory[0xFFD] = 0xF5
    cpu.memory[0xFFE] = 0x0A
    cpu.registers.program_counter = 0xFFD
    cpu.cycle()
    assert cpu.awaiting_key
    assert cpu.registers.program_counter == 0xFFF

    cpu.key_released(0x7)
    with pytest.raises(MemoryAccessError):
        cpu.cycle()
    assert cpu.registers.v[5] == 0
    assert cpu.status.key_wait is KeyWaitState.KEY_RESOLVED
    assert cpu.registers.program_counter == 0xFFF
