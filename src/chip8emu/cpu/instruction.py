"""CHIP-8 instruction decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

Discriminant = Tuple[Optional[int], Optional[int], Optional[int], Optional[int]]

# Which nibbles identify the operation for each leading nibble; the rest are operands.
_FIXED_NIBBLES: Dict[int, Tuple[bool, bool, bool, bool]] = {
    0x0: (True, True, True, True),
    0x1: (True, False, False, False),
    0x2: (True, False, False, False),
    0x3: (True, False, False, False),
    0x4: (True, False, False, False),
    0x5: (True, False, False, True),
    0x6: (True, False, False, False),
    0x7: (True, False, False, False),
    0x8: (True, False, False, True),
    0x9: (True, False, False, True),
    0xA: (True, False, False, False),
    0xB: (True, False, False, False),
    0xC: (True, False, False, False),
    0xD: (True, False, False, False),
    0xE: (True, False, True, True),
    0xF: (True, False, True, True),
}

_PLACEHOLDERS = frozenset("XYN")


@dataclass(frozen=True)
class Instruction:
    """A fetched opcode split into its four nibbles (left to right)."""

    d1: int
    d2: int
    d3: int
    d4: int

    @property
    def word(self) -> int:
        return (self.d1 << 12) | (self.d2 << 8) | (self.d3 << 4) | self.d4

    @property
    def x(self) -> int:
        return self.d2

    @property
    def y(self) -> int:
        return self.d3

    @property
    def n(self) -> int:
        return self.d4

    @property
    def nn(self) -> int:
        return (self.d3 << 4) | self.d4

    @property
    def nnn(self) -> int:
        return (self.d2 << 8) | (self.d3 << 4) | self.d4

    def discriminant(self) -> Discriminant:
        fixed = _FIXED_NIBBLES[self.d1]
        nibbles = (self.d1, self.d2, self.d3, self.d4)
        return tuple(value if keep else None for value, keep in zip(nibbles, fixed))  # type: ignore[return-value]

    def __str__(self) -> str:
        return f"{self.word:04X}"


def decode(word: int) -> Instruction:
    """Split a 16-bit opcode into nibbles. Every value decodes."""

    word &= 0xFFFF
    return Instruction(
        (word & 0xF000) >> 12,
        (word & 0x0F00) >> 8,
        (word & 0x00F0) >> 4,
        word & 0x000F,
    )


def parse_pattern(pattern: str) -> Discriminant:
    """Turn an opcode mnemonic such as ``"8XY4"`` into a dispatch discriminant."""

    text = pattern.strip().upper()
    if len(text) != 4:
        raise ValueError(f"opcode pattern must have four nibbles: {pattern!r}")
    try:
        leading = int(text[0], 16)
    except ValueError:
        raise ValueError(f"opcode pattern must start with a hex digit: {pattern!r}") from None
    fixed = _FIXED_NIBBLES[leading]
    nibbles = []
    for char, keep in zip(text, fixed):
        if char in _PLACEHOLDERS:
            if keep:
                raise ValueError(f"operand placeholder in an opcode nibble: {pattern!r}")
            nibbles.append(None)
            continue
        if not keep:
            raise ValueError(f"literal nibble where an operand belongs: {pattern!r}")
        try:
            nibbles.append(int(char, 16))
        except ValueError:
            raise ValueError(f"invalid nibble {char!r} in {pattern!r}") from None
    return tuple(nibbles)  # type: ignore[return-value]
