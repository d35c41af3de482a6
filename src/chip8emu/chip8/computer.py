"""CHIP-8 system wiring: CPU, peripherals and frame pacing."""

from __future__ import annotations

import logging
import os
import random
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.sound import Chip8SoundProcessor
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.cpu.errors import Chip8Error
from chip8emu.emulator.file import ROM_SUFFIXES, ProgramInfo, ProgramLoadError, read_rom
from chip8emu.system.scheduler import TimerScheduler

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS_PER_FRAME = 10


class Chip8Computer:
    """Host machine tying together hardware, CPU and the timer scheduler."""

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_HALTED = 2

    ENV_ROM_PATH = "CHIP8EMU_ROM"

    def __init__(
        self,
        *,
        enable_audio: bool = False,
        instructions_per_frame: int = DEFAULT_INSTRUCTIONS_PER_FRAME,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        if instructions_per_frame <= 0:
            raise ValueError("instructions_per_frame must be positive")
        self.hardware = Chip8Hardware(sound_processor=Chip8SoundProcessor(enable_audio=enable_audio))
        self.cpu_core = Chip8CPU(self.hardware, rng=rng)
        self.scheduler = TimerScheduler(self.cpu_core.tick_timers, clock=clock)
        self.instructions_per_frame = instructions_per_frame
        self.program_info: Optional[ProgramInfo] = None
        self.halt_reason: Optional[Chip8Error] = None
        self.cycle_count = 0
        self._running_status = self.STATUS_RUNNING
        self.hardware.keyboard.add_release_listener(self.cpu_core.key_released)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def display(self):
        return self.hardware.display

    @property
    def keyboard(self):
        return self.hardware.keyboard

    @property
    def memory(self) -> bytearray:
        return self.cpu_core.memory

    @property
    def halted(self) -> bool:
        return self._running_status == self.STATUS_HALTED

    def get_running_status(self) -> int:
        return self._running_status

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------
    def load_program(self, data: Iterable[int], *, name: str = "") -> ProgramInfo:
        program = bytes(data)
        self.reset(reload=False)
        self.cpu_core.load_program(program)
        self.program_info = ProgramInfo(data=program, name=name)
        return self.program_info

    def load_user_program(self, path: str | os.PathLike[str]) -> ProgramInfo:
        file_path = Path(path)
        if file_path.suffix.lower() not in ROM_SUFFIXES:
            raise ProgramLoadError(f"unsupported program format: {file_path.suffix}")
        info = read_rom(file_path)
        self.reset(reload=False)
        self.cpu_core.load_program(info.data)
        self.program_info = info
        logger.debug("Loaded %s (%d bytes)", file_path, info.size)
        return info

    @classmethod
    def resolve_rom_path(cls, rom_path: str | os.PathLike[str] | None) -> Optional[Path]:
        candidates: list[Path] = []
        if rom_path is not None and str(rom_path):
            candidates.append(Path(rom_path))
        env_value = os.getenv(cls.ENV_ROM_PATH)
        if env_value:
            candidates.append(Path(env_value))
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def step(self) -> bool:
        """Execute one instruction. Returns ``False`` once the machine is halted."""

        if self._running_status == self.STATUS_HALTED:
            return False
        try:
            self.cpu_core.cycle()
        except Chip8Error as exc:
            self._halt(exc)
            return False
        self.cycle_count += 1
        return True

    def run_frame(self) -> int:
        """Run one frame's worth of instructions and any due timer ticks."""

        if self._running_status != self.STATUS_RUNNING:
            return 0
        executed = 0
        for _ in range(self.instructions_per_frame):
            if not self.step():
                break
            executed += 1
        if self._running_status == self.STATUS_RUNNING:
            self.scheduler.update()
        return executed

    def _halt(self, error: Chip8Error) -> None:
        self.halt_reason = error
        self._running_status = self.STATUS_HALTED
        logger.error("CHIP-8 halted: %s", error)

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._running_status = self.STATUS_PAUSED

    def resume(self) -> None:
        if self._running_status != self.STATUS_PAUSED:
            return
        self._running_status = self.STATUS_RUNNING
        self.scheduler.reset()

    def toggle_pause(self) -> bool:
        if self._running_status == self.STATUS_RUNNING:
            self.pause()
        else:
            self.resume()
        return self._running_status == self.STATUS_PAUSED

    def reset(self, *, reload: bool = True) -> None:
        """Power-cycle the machine; with ``reload`` the current program is loaded again."""

        self.cpu_core.reset()
        self.display.clear_screen()
        self.keyboard.clear()
        self.halt_reason = None
        self.cycle_count = 0
        self._running_status = self.STATUS_RUNNING
        self.scheduler.reset()
        if reload and self.program_info is not None:
            self.cpu_core.load_program(self.program_info.data)
