"""CHIP-8 execution engine."""

from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Iterable, Optional

from chip8emu.cpu.instruction import Discriminant, Instruction, decode, parse_pattern
from chip8emu.cpu.state import (
    FONT_GLYPH_SIZE,
    FONT_START,
    MAX_PROGRAM_SIZE,
    PROGRAM_START,
    Chip8State,
    KeyWaitState,
)

logger = logging.getLogger(__name__)

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
INDEX_LIMIT = 0x0FFF

Handler = Callable[[Instruction], None]


class Chip8CPU:
    """Fetch/decode/execute loop over a :class:`Chip8State`.

    The CPU talks to three collaborators found on ``hardware``: ``display``
    (``clear_screen``/``draw``), ``keyboard`` (``is_pressed``) and an optional
    ``sound_processor`` (``signal_sound_start``/``signal_sound_stop``).
    ``cycle`` and ``tick_timers`` are independent; the host decides how often
    to call each.
    """

    def __init__(self, hardware: object, *, rng: Optional[random.Random] = None) -> None:
        self.hardware = hardware
        self.state = Chip8State()
        self._rng = rng if rng is not None else random.Random()
        self._opcode_table: Dict[Discriminant, Handler] = {}
        self._init_opcode_table()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def registers(self):
        return self.state.registers

    @property
    def timers(self):
        return self.state.timers

    @property
    def status(self):
        return self.state.status

    @property
    def stack(self):
        return self.state.stack

    @property
    def memory(self) -> bytearray:
        return self.state.memory

    @property
    def display(self):
        return self.hardware.display

    @property
    def keyboard(self):
        return self.hardware.keyboard

    @property
    def sound(self):
        return getattr(self.hardware, "sound_processor", None)

    @property
    def awaiting_key(self) -> bool:
        return self.state.status.key_wait is KeyWaitState.AWAITING_KEY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Zero registers, stack, timers and memory, then reload the font."""

        was_sounding = self.state.timers.sound > 0
        self.state = Chip8State()
        if was_sounding:
            self._signal_sound(False)

    def load_program(self, data: Iterable[int]) -> None:
        program = bytes(data)
        if len(program) > MAX_PROGRAM_SIZE:
            raise ValueError(
                f"program is {len(program)} bytes; at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}"
            )
        self.state.memory[PROGRAM_START:PROGRAM_START + len(program)] = program

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def cycle(self) -> Optional[Instruction]:
        """Run one instruction. Returns it, or ``None`` while waiting for a key."""

        status = self.state.status
        if status.key_wait is KeyWaitState.AWAITING_KEY:
            return None
        resolved = status.key_wait is KeyWaitState.KEY_RESOLVED

        instruction = decode(self._fetch())
        if resolved:
            self._resolve_key_wait()
        self.execute(instruction)
        return instruction

    def execute(self, instruction: Instruction) -> None:
        handler = self._opcode_table.get(instruction.discriminant())
        if handler is None:
            logger.debug("Ignoring unknown opcode %s", instruction)
            return
        handler(instruction)

    def tick_timers(self) -> None:
        """Decrement both timers by one, saturating at zero."""

        timers = self.state.timers
        if timers.delay > 0:
            timers.delay -= 1
        if timers.sound > 0:
            timers.sound -= 1
            if timers.sound == 0:
                self._signal_sound(False)

    def key_released(self, key: int) -> None:
        status = self.state.status
        if status.key_wait is not KeyWaitState.AWAITING_KEY:
            return
        status.resolved_key = key & 0xF
        status.key_wait = KeyWaitState.KEY_RESOLVED
        logger.debug("Key %X released while waiting for V%X", status.resolved_key, status.key_target)

    def _resolve_key_wait(self) -> None:
        status = self.state.status
        key = status.resolved_key if status.resolved_key is not None else 0
        self.state.registers.v[status.key_target] = key
        status.key_wait = KeyWaitState.RUNNING
        status.resolved_key = None

    def _fetch(self) -> int:
        registers = self.state.registers
        pc = registers.program_counter
        high, low = self.state.read_block(pc, 2)
        registers.program_counter = (pc + 2) & 0xFFFF
        return (high << 8) | low

    def _skip_next(self) -> None:
        registers = self.state.registers
        registers.program_counter = (registers.program_counter + 2) & 0xFFFF

    def _signal_sound(self, on: bool) -> None:
        sound = self.sound
        if sound is None:
            return
        if on:
            sound.signal_sound_start()
        else:
            sound.signal_sound_stop()

    # ------------------------------------------------------------------
    # Opcode table
    # ------------------------------------------------------------------
    def _init_opcode_table(self) -> None:
        self._opcode_table.clear()
        self._register_opcode("00E0", self._opcode_cls)
        self._register_opcode("00EE", self._opcode_ret)
        self._register_opcode("1NNN", self._opcode_jp)
        self._register_opcode("2NNN", self._opcode_call)
        self._register_opcode("3XNN", self._opcode_se_byte)
        self._register_opcode("4XNN", self._opcode_sne_byte)
        self._register_opcode("5XY0", self._opcode_se_reg)
        self._register_opcode("6XNN", self._opcode_ld_byte)
        self._register_opcode("7XNN", self._opcode_add_byte)
        self._register_opcode("8XY0", self._opcode_ld_reg)
        self._register_opcode("8XY1", self._opcode_or)
        self._register_opcode("8XY2", self._opcode_and)
        self._register_opcode("8XY3", self._opcode_xor)
        self._register_opcode("8XY4", self._opcode_add_reg)
        self._register_opcode("8XY5", self._opcode_sub)
        self._register_opcode("8XY6", self._opcode_shr)
        self._register_opcode("8XY7", self._opcode_subn)
        self._register_opcode("8XYE", self._opcode_shl)
        self._register_opcode("9XY0", self._opcode_sne_reg)
        self._register_opcode("ANNN", self._opcode_ld_index)
        self._register_opcode("BNNN", self._opcode_jp_v0)
        self._register_opcode("CXNN", self._opcode_rnd)
        self._register_opcode("DXYN", self._opcode_drw)
        self._register_opcode("EX9E", self._opcode_skp)
        self._register_opcode("EXA1", self._opcode_sknp)
        self._register_opcode("FX07", self._opcode_ld_from_delay)
        self._register_opcode("FX0A", self._opcode_wait_key)
        self._register_opcode("FX15", self._opcode_ld_delay)
        self._register_opcode("FX18", self._opcode_ld_sound)
        self._register_opcode("FX1E", self._opcode_add_index)
        self._register_opcode("FX29", self._opcode_ld_font)
        self._register_opcode("FX33", self._opcode_bcd)
        self._register_opcode("FX55", self._opcode_store_registers)
        self._register_opcode("FX65", self._opcode_load_registers)

    def _register_opcode(self, pattern: str, handler: Handler) -> None:
        key = parse_pattern(pattern)
        if key in self._opcode_table:
            raise ValueError(f"duplicate opcode pattern {pattern}")
        self._opcode_table[key] = handler

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _opcode_cls(self, op: Instruction) -> None:
        self.display.clear_screen()

    def _opcode_ret(self, op: Instruction) -> None:
        registers = self.state.registers
        registers.program_counter = self.state.stack.pop(pc=registers.program_counter - 2)

    def _opcode_jp(self, op: Instruction) -> None:
        self.state.registers.program_counter = op.nnn

    def _opcode_call(self, op: Instruction) -> None:
        registers = self.state.registers
        self.state.stack.push(registers.program_counter, pc=registers.program_counter - 2)
        registers.program_counter = op.nnn

    def _opcode_jp_v0(self, op: Instruction) -> None:
        self.state.registers.program_counter = op.nnn + self.state.registers.v[0]

    def _opcode_se_byte(self, op: Instruction) -> None:
        if self.state.registers.v[op.x] == op.nn:
            self._skip_next()

    def _opcode_sne_byte(self, op: Instruction) -> None:
        if self.state.registers.v[op.x] != op.nn:
            self._skip_next()

    def _opcode_se_reg(self, op: Instruction) -> None:
        v = self.state.registers.v
        if v[op.x] == v[op.y]:
            self._skip_next()

    def _opcode_sne_reg(self, op: Instruction) -> None:
        v = self.state.registers.v
        if v[op.x] != v[op.y]:
            self._skip_next()

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------
    def _opcode_ld_byte(self, op: Instruction) -> None:
        self.state.registers.v[op.x] = op.nn

    def _opcode_add_byte(self, op: Instruction) -> None:
        v = self.state.registers.v
        v[op.x] = (v[op.x] + op.nn) & 0xFF

    def _opcode_ld_reg(self, op: Instruction) -> None:
        v = self.state.registers.v
        v[op.x] = v[op.y]

    def _opcode_or(self, op: Instruction) -> None:
        v = self.state.registers.v
        v[op.x] |= v[op.y]

    def _opcode_and(self, op: Instruction) -> None:
        v = self.state.registers.v
        v[op.x] &= v[op.y]

    def _opcode_xor(self, op: Instruction) -> None:
        v = self.state.registers.v
        v[op.x] ^= v[op.y]

    def _opcode_add_reg(self, op: Instruction) -> None:
        v = self.state.registers.v
        total = v[op.x] + v[op.y]
        v[op.x] = total & 0xFF
        v[0xF] = 1 if total > 0xFF else 0

    def _opcode_sub(self, op: Instruction) -> None:
        v = self.state.registers.v
        no_borrow = v[op.x] >= v[op.y]
        v[op.x] = (v[op.x] - v[op.y]) & 0xFF
        v[0xF] = 1 if no_borrow else 0

    def _opcode_subn(self, op: Instruction) -> None:
        v = self.state.registers.v
        no_borrow = v[op.y] >= v[op.x]
        v[op.x] = (v[op.y] - v[op.x]) & 0xFF
        v[0xF] = 1 if no_borrow else 0

    def _opcode_shr(self, op: Instruction) -> None:
        v = self.state.registers.v
        value = v[op.y]
        v[op.x] = value >> 1
        v[0xF] = value & 0x01

    def _opcode_shl(self, op: Instruction) -> None:
        v = self.state.registers.v
        value = v[op.y]
        v[op.x] = (value << 1) & 0xFF
        v[0xF] = (value >> 7) & 0x01

    def _opcode_rnd(self, op: Instruction) -> None:
        self.state.registers.v[op.x] = self._rng.getrandbits(8) & op.nn

    # ------------------------------------------------------------------
    # Index register, memory and display
    # ------------------------------------------------------------------
    def _opcode_ld_index(self, op: Instruction) -> None:
        self.state.registers.index = op.nnn

    def _opcode_add_index(self, op: Instruction) -> None:
        registers = self.state.registers
        result = registers.index + registers.v[op.x]
        registers.index = result & 0xFFFF
        registers.v[0xF] = 1 if result > INDEX_LIMIT else 0

    def _opcode_ld_font(self, op: Instruction) -> None:
        registers = self.state.registers
        registers.index = FONT_START + registers.v[op.x] * FONT_GLYPH_SIZE

    def _opcode_drw(self, op: Instruction) -> None:
        registers = self.state.registers
        sprite = self.state.read_block(registers.index, op.n)
        x = registers.v[op.x] % DISPLAY_WIDTH
        y = registers.v[op.y] % DISPLAY_HEIGHT
        collision = self.display.draw(x, y, sprite)
        registers.v[0xF] = 1 if collision else 0

    def _opcode_bcd(self, op: Instruction) -> None:
        registers = self.state.registers
        start = registers.index
        self.state.check_range(start, 3)
        value = registers.v[op.x]
        self.state.memory[start] = value // 100
        self.state.memory[start + 1] = (value // 10) % 10
        self.state.memory[start + 2] = value % 10

    def _opcode_store_registers(self, op: Instruction) -> None:
        registers = self.state.registers
        count = op.x + 1
        self.state.check_range(registers.index, count)
        self.state.memory[registers.index:registers.index + count] = registers.v[:count]

    def _opcode_load_registers(self, op: Instruction) -> None:
        registers = self.state.registers
        count = op.x + 1
        registers.v[:count] = self.state.read_block(registers.index, count)

    # ------------------------------------------------------------------
    # Keyboard and timers
    # ------------------------------------------------------------------
    def _opcode_skp(self, op: Instruction) -> None:
        if self.keyboard.is_pressed(self.state.registers.v[op.x]):
            self._skip_next()

    def _opcode_sknp(self, op: Instruction) -> None:
        if not self.keyboard.is_pressed(self.state.registers.v[op.x]):
            self._skip_next()

    def _opcode_wait_key(self, op: Instruction) -> None:
        status = self.state.status
        status.key_wait = KeyWaitState.AWAITING_KEY
        status.key_target = op.x
        status.resolved_key = None
        logger.debug("Waiting for key release into V%X", op.x)

    def _opcode_ld_from_delay(self, op: Instruction) -> None:
        self.state.registers.v[op.x] = self.state.timers.delay

    def _opcode_ld_delay(self, op: Instruction) -> None:
        self.state.timers.delay = self.state.registers.v[op.x]

    def _opcode_ld_sound(self, op: Instruction) -> None:
        timers = self.state.timers
        previous = timers.sound
        timers.sound = self.state.registers.v[op.x]
        if previous == 0 and timers.sound > 0:
            self._signal_sound(True)
        elif previous > 0 and timers.sound == 0:
            self._signal_sound(False)

