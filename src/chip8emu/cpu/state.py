"""CHIP-8 machine state: memory, register file, call stack and timers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from chip8emu.cpu.errors import MemoryAccessError, StackOverflowError, StackUnderflowError

MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START
REGISTER_COUNT = 0x10
STACK_DEPTH = 16
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

FONT_SET = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)


class KeyWaitState(Enum):
    """Sub-states of the Fx0A wait-for-key protocol."""

    RUNNING = "running"
    AWAITING_KEY = "awaiting_key"
    KEY_RESOLVED = "key_resolved"


@dataclass
class CPURegisters:
    """V0-VF plus the index register and program counter."""

    v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    index: int = 0
    program_counter: int = PROGRAM_START

    @property
    def vf(self) -> int:
        return self.v[0xF]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[0xF] = value & 0xFF


@dataclass
class CPUTimers:
    delay: int = 0
    sound: int = 0


@dataclass
class CPUStatus:
    key_wait: KeyWaitState = KeyWaitState.RUNNING
    key_target: int = 0
    resolved_key: Optional[int] = None


class CallStack:
    """Fixed 16-slot return address stack. Never wraps."""

    def __init__(self, depth: int = STACK_DEPTH) -> None:
        self._slots: List[int] = [0] * depth
        self._pointer = 0

    @property
    def pointer(self) -> int:
        return self._pointer

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._pointer

    def push(self, address: int, *, pc: int) -> None:
        if self._pointer >= len(self._slots):
            raise StackOverflowError(pc)
        self._slots[self._pointer] = address & 0xFFFF
        self._pointer += 1

    def pop(self, *, pc: int) -> int:
        if self._pointer == 0:
            raise StackUnderflowError(pc)
        self._pointer -= 1
        return self._slots[self._pointer]

    def entries(self) -> List[int]:
        return list(self._slots[: self._pointer])

    def clear(self) -> None:
        self._slots = [0] * len(self._slots)
        self._pointer = 0


@dataclass
class Chip8State:
    """Everything the CPU owns for one ROM session."""

    memory: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))
    registers: CPURegisters = field(default_factory=CPURegisters)
    timers: CPUTimers = field(default_factory=CPUTimers)
    status: CPUStatus = field(default_factory=CPUStatus)
    stack: CallStack = field(default_factory=CallStack)

    def __post_init__(self) -> None:
        self.memory[FONT_START:FONT_START + len(FONT_SET)] = FONT_SET

    def check_range(self, start: int, length: int) -> None:
        if start < 0 or length < 0 or start + length > MEMORY_SIZE:
            raise MemoryAccessError(start, length)

    def load8(self, address: int) -> int:
        self.check_range(address, 1)
        return self.memory[address]

    def store8(self, address: int, value: int) -> None:
        self.check_range(address, 1)
        self.memory[address] = value & 0xFF

    def read_block(self, start: int, length: int) -> bytes:
        self.check_range(start, length)
        return bytes(self.memory[start:start + length])
