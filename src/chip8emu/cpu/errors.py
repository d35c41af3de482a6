"""Error types raised by the CHIP-8 core."""

from __future__ import annotations


class Chip8Error(RuntimeError):
    """Base class for ROM integrity failures that halt the machine."""


class StackOverflowError(Chip8Error):
    """Raised when a subroutine call is made with all 16 stack slots in use."""

    def __init__(self, address: int) -> None:
        super().__init__(f"call stack overflow at PC={address:03X}")
        self.address = address


class StackUnderflowError(Chip8Error):
    """Raised when returning from a subroutine with an empty call stack."""

    def __init__(self, address: int) -> None:
        super().__init__(f"call stack underflow at PC={address:03X}")
        self.address = address


class MemoryAccessError(Chip8Error):
    """Raised when a computed address range falls outside the 4 KiB memory."""

    def __init__(self, start: int, length: int) -> None:
        super().__init__(f"memory access out of range: 0x{start:04X}+{length}")
        self.start = start
        self.length = length
