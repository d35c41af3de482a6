"""ROM file loading for CHIP-8 programs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chip8emu.cpu.state import MAX_PROGRAM_SIZE, PROGRAM_START

ROM_SUFFIXES = frozenset({".ch8", ".c8", ".rom", ""})


class ProgramLoadError(RuntimeError):
    """Raised when a ROM image cannot be read."""


@dataclass
class ProgramInfo:
    data: bytes
    name: str = ""
    path: Optional[Path] = None
    start_address: int = PROGRAM_START

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end_address(self) -> int:
        return self.start_address + len(self.data) - 1


def read_rom(path: str | Path) -> ProgramInfo:
    """Read a raw CHIP-8 ROM image and check that it fits in memory."""

    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"cannot read {file_path}: {exc}") from exc
    if not data:
        raise ProgramLoadError(f"{file_path} is empty")
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramLoadError(
            f"{file_path} is {len(data)} bytes; at most {MAX_PROGRAM_SIZE} bytes fit in memory"
        )
    return ProgramInfo(data=data, name=file_path.stem.upper(), path=file_path)
