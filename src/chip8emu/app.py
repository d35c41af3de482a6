"""CHIP-8 emulator pygame application."""

from __future__ import annotations

import argparse
import logging
import random
from typing import Dict, Iterable, Optional

from chip8emu.chip8.computer import DEFAULT_INSTRUCTIONS_PER_FRAME, Chip8Computer
from chip8emu.chip8.keyboard import Chip8Keyboard
from chip8emu.emulator.file import ProgramInfo, ProgramLoadError

logger = logging.getLogger(__name__)

BASE_CAPTION = "CHIP-8 Emulator"

# Mapping from pygame key constants to keypad nibbles (left block of a QWERTY keyboard).
KEY_MAP: Dict[int, int] = {
    ord("1"): 0x1,
    ord("2"): 0x2,
    ord("3"): 0x3,
    ord("4"): 0xC,
    ord("q"): 0x4,
    ord("w"): 0x5,
    ord("e"): 0x6,
    ord("r"): 0xD,
    ord("a"): 0x7,
    ord("s"): 0x8,
    ord("d"): 0x9,
    ord("f"): 0xE,
    ord("z"): 0xA,
    ord("x"): 0x0,
    ord("c"): 0xB,
    ord("v"): 0xF,
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _handle_key_event(keyboard: Chip8Keyboard, key: int, pressed: bool) -> None:
    mapping = KEY_MAP.get(key)
    if mapping is None:
        return
    if pressed:
        keyboard.press(mapping)
    else:
        keyboard.release(mapping)


def _build_caption(info: Optional[ProgramInfo], computer: Chip8Computer) -> str:
    caption = BASE_CAPTION
    if info is not None and info.name:
        caption = f"{caption} | {info.name}"
    status = computer.get_running_status()
    if status == Chip8Computer.STATUS_PAUSED:
        caption += " | Paused"
    elif status == Chip8Computer.STATUS_HALTED:
        caption += f" | Halted: {computer.halt_reason}"
    return caption


def _pygame_loop(computer: Chip8Computer, scale: int, fps: int) -> None:
    import pygame  # type: ignore

    display = computer.display
    keyboard = computer.keyboard

    pygame.init()
    screen = pygame.display.set_mode((display.WIDTH * scale, display.HEIGHT * scale))
    caption = _build_caption(computer.program_info, computer)
    pygame.display.set_caption(caption)
    clock = pygame.time.Clock()

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                continue
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                    continue
                if event.key == pygame.K_p:
                    computer.toggle_pause()
                    continue
                if event.key == pygame.K_F5:
                    computer.reset()
                    continue
                _handle_key_event(keyboard, event.key, True)
            elif event.type == pygame.KEYUP:
                _handle_key_event(keyboard, event.key, False)

        computer.run_frame()

        new_caption = _build_caption(computer.program_info, computer)
        if new_caption != caption:
            caption = new_caption
            pygame.display.set_caption(caption)

        if display.dirty:
            screen.blit(display.render_pygame_surface(scale), (0, 0))
            pygame.display.flip()
        clock.tick(fps)

    pygame.quit()


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8emu", description="CHIP-8 emulator")
    parser.add_argument(
        "rom",
        nargs="?",
        default=None,
        help=f"Path to a CHIP-8 ROM image (defaults to ${Chip8Computer.ENV_ROM_PATH})",
    )
    parser.add_argument("--scale", type=int, default=10, help="Integer scaling factor for display (default: 10)")
    parser.add_argument("--fps", type=int, default=60, help="Target frames per second (default: 60)")
    parser.add_argument(
        "--ipf",
        type=int,
        default=DEFAULT_INSTRUCTIONS_PER_FRAME,
        help=f"Instructions executed per frame (default: {DEFAULT_INSTRUCTIONS_PER_FRAME})",
    )
    parser.add_argument(
        "--audio",
        dest="audio",
        action="store_true",
        help="Enable square-wave audio output (requires pygame mixer)",
    )
    parser.add_argument("--no-audio", dest="audio", action="store_false", help="Disable audio output")
    parser.set_defaults(audio=True)
    parser.add_argument("--seed", type=int, default=None, help="Seed for the CXNN random number generator")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="WARNING", help="Logging verbosity")
    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(levelname)s] %(name)s: %(message)s")

    if args.scale <= 0:
        raise SystemExit("scale must be positive")
    if args.fps <= 0:
        raise SystemExit("fps must be positive")
    if args.ipf <= 0:
        raise SystemExit("ipf must be positive")

    rom_path = Chip8Computer.resolve_rom_path(args.rom)
    if rom_path is None:
        parser.error(f"no ROM given (pass a path or set ${Chip8Computer.ENV_ROM_PATH})")

    rng = random.Random(args.seed) if args.seed is not None else None
    computer = Chip8Computer(enable_audio=args.audio, instructions_per_frame=args.ipf, rng=rng)
    try:
        computer.load_user_program(rom_path)
    except ProgramLoadError as exc:
        raise SystemExit(f"Failed to load ROM: {exc}")
    logger.info("Running %s at %d instructions per frame", rom_path, args.ipf)

    try:
        _pygame_loop(computer, args.scale, args.fps)
    except RuntimeError as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
