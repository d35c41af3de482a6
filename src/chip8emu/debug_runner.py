"""Headless runner for CHIP-8 ROM debugging workflows."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from chip8emu.chip8.computer import DEFAULT_INSTRUCTIONS_PER_FRAME, Chip8Computer
from chip8emu.cpu.state import MEMORY_SIZE
from chip8emu.emulator.file import ProgramLoadError

DEFAULT_MAX_CYCLES = 100_000
ADDRESS_MASK = MEMORY_SIZE - 1

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_CYCLE_LIMIT = 2
EXIT_HALTED = 4


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    def iter_addresses(self) -> Iterable[int]:
        for address in range(self.start, self.end + 1):
            yield address & ADDRESS_MASK


def _parse_hex(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= ADDRESS_MASK):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _merge_ranges(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x000, ADDRESS_MASK)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if merged and current.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory: bytes | bytearray, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    header = "ADDR " + " ".join(f"+{offset:X}" for offset in range(16))
    for index, dump_range in enumerate(dump_ranges):
        if index:
            lines.append("")
        lines.append(header)
        start_line = dump_range.start & ~0x0F
        end_line = dump_range.end | 0x0F
        for base in range(start_line, end_line + 1, 16):
            row = [f"{base:03X} "]
            row.extend(f"{memory[base + offset]:02X}" for offset in range(16))
            lines.append(" ".join(row))
    return "\n".join(lines)


def _format_registers(computer: Chip8Computer) -> str:
    cpu = computer.cpu_core
    regs = cpu.registers
    lines = [
        f"PC:{regs.program_counter:03X} I:{regs.index:03X} SP:{cpu.stack.pointer:X} "
        f"DT:{cpu.timers.delay:02X} ST:{cpu.timers.sound:02X} WAIT:{cpu.status.key_wait.value}",
        " ".join(f"V{index:X}:{value:02X}" for index, value in enumerate(regs.v)),
    ]
    stack = cpu.stack.entries()
    if stack:
        lines.append("STACK: " + " ".join(f"{address:03X}" for address in stack))
    return "\n".join(lines)


def _write_dump(memory: bytes | bytearray, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges)
    if fmt == "bin":
        data = bytes(memory[address] for dump_range in ranges for address in dump_range.iter_addresses())
        if target is None:
            sys.stdout.buffer.write(data)
            return
        target.write_bytes(data)
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _execute_program(
    computer: Chip8Computer,
    *,
    max_cycles: int | None,
    breakpoints: Sequence[int],
    cycles_per_tick: int,
) -> Tuple[int, bool, bool]:
    """Run until a breakpoint, the cycle limit or a halt. Timers tick every ``cycles_per_tick``."""

    cpu = computer.cpu_core
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    executed = 0
    break_hit = False
    cycle_hit = False
    if cpu.registers.program_counter in break_set:
        return executed, True, cycle_hit
    while max_cycles is None or executed < max_cycles:
        if not computer.step():
            break
        executed += 1
        if executed % cycles_per_tick == 0:
            cpu.tick_timers()
        if break_set and cpu.registers.program_counter in break_set:
            break_hit = True
            break
    else:
        cycle_hit = True
    return executed, break_hit, cycle_hit


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-debug-runner",
        description="Headless CHIP-8 runner for ROM diagnostics.",
    )
    parser.add_argument("--program", type=str, required=True, help="CHIP-8 ROM image (.ch8)")
    parser.add_argument(
        "--cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help="Maximum instructions to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--cycles-per-tick",
        type=int,
        default=DEFAULT_INSTRUCTIONS_PER_FRAME,
        help="Instructions executed between 60 Hz timer ticks",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument("--dump", type=str, default=None, help="File path for memory dump (defaults to stdout)")
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    parser.add_argument("--screen", action="store_true", help="Print the framebuffer as text after the run")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the CXNN random number generator")
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="Logging verbosity",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(levelname)s] %(name)s: %(message)s")

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    if args.cycles_per_tick <= 0:
        parser.error("--cycles-per-tick must be positive")

    computer = Chip8Computer(enable_audio=False, rng=random.Random(args.seed))
    try:
        computer.load_user_program(args.program)
    except ProgramLoadError as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return EXIT_LOAD_FAILED

    cycle_limit = args.cycles if args.cycles > 0 else None
    _, break_hit, cycle_hit = _execute_program(
        computer,
        max_cycles=cycle_limit,
        breakpoints=breakpoints,
        cycles_per_tick=args.cycles_per_tick,
    )

    print(_format_registers(computer), file=sys.stderr)
    if args.screen:
        print(computer.display.render_text(), file=sys.stderr)

    dump_target = Path(args.dump) if args.dump is not None else None
    _write_dump(computer.memory, dump_ranges, target=dump_target, fmt=args.dump_format)

    if computer.halted:
        print(f"Execution halted: {computer.halt_reason}", file=sys.stderr)
        return EXIT_HALTED
    if break_hit:
        return EXIT_OK
    if cycle_hit:
        print("Execution stopped: cycle limit reached", file=sys.stderr)
        return EXIT_CYCLE_LIMIT
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
