"""CHIP-8 hardware bundle handed to the CPU."""

from __future__ import annotations

from dataclasses import dataclass, field

from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.keyboard import Chip8Keyboard
from chip8emu.chip8.sound import Chip8SoundProcessor


@dataclass
class Chip8Hardware:
    display: Chip8Display = field(default_factory=Chip8Display)
    keyboard: Chip8Keyboard = field(default_factory=Chip8Keyboard)
    sound_processor: Chip8SoundProcessor = field(default_factory=Chip8SoundProcessor)
