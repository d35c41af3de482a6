"""CHIP-8 monochrome framebuffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Sequence


@dataclass
class Chip8Display:
    WIDTH: ClassVar[int] = 64
    HEIGHT: ClassVar[int] = 32

    foreground: int = 0xFFFFFF
    background: int = 0x000000
    pixels: List[List[bool]] = field(default_factory=lambda: [[False] * Chip8Display.WIDTH for _ in range(Chip8Display.HEIGHT)])
    dirty: bool = True

    def clear_screen(self) -> None:
        self.pixels = [[False] * self.WIDTH for _ in range(self.HEIGHT)]
        self.dirty = True

    def get_pixel(self, x: int, y: int) -> bool:
        return self.pixels[y % self.HEIGHT][x % self.WIDTH]

    def set_pixel(self, x: int, y: int, on: bool) -> None:
        self.pixels[y % self.HEIGHT][x % self.WIDTH] = bool(on)
        self.dirty = True

    def draw(self, x: int, y: int, sprite: Sequence[int]) -> bool:
        """XOR ``sprite`` rows onto the screen starting at ``(x, y)``.

        Each pixel coordinate wraps around the screen edges on its own.
        Returns ``True`` if any lit pixel was switched off.
        """

        collision = False
        for row, line in enumerate(sprite):
            py = (y + row) % self.HEIGHT
            pixel_row = self.pixels[py]
            for bit in range(8):
                if not (line >> (7 - bit)) & 0x01:
                    continue
                px = (x + bit) % self.WIDTH
                if pixel_row[px]:
                    collision = True
                pixel_row[px] = not pixel_row[px]
        self.dirty = True
        return collision

    def lit_count(self) -> int:
        return sum(row.count(True) for row in self.pixels)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_pixels(self) -> List[List[int]]:
        return [
            [self.foreground if on else self.background for on in row]
            for row in self.pixels
        ]

    def render_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join("".join(on if lit else off for lit in row) for row in self.pixels)

    def render_pygame_surface(self, scaling: int = 1):
        """Render the framebuffer into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Returns
        -------
        pygame.Surface
            RGB surface representing the current screen.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((self.WIDTH * scaling, self.HEIGHT * scaling))
        surface.fill(_rgb(self.background))
        colour = _rgb(self.foreground)
        for y, row in enumerate(self.pixels):
            for x, on in enumerate(row):
                if on:
                    surface.fill(colour, (x * scaling, y * scaling, scaling, scaling))
        self.dirty = False
        return surface


def _rgb(value: int) -> tuple[int, int, int]:
    return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)
