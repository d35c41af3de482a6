from __future__ import annotations

from pathlib import Path

from chip8emu import debug_runner


def _write_rom(path: Path, payload: bytes) -> Path:
    path.write_bytes(payload)
    return path


def test_debug_runner_breaks_and_dumps(tmp_path, capsys) -> None:
    rom_path = _write_rom(tmp_path / "loop.ch8", bytes([0x12, 0x00]))

    exit_code = debug_runner.main(
        [
            "--program",
            str(rom_path),
            "--cycles",
            "512",
            "--break-pc",
            "0x200",
            "--dump-range",
            "0200:020F",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == 0
    output_lines = [line for line in captured.out.strip().splitlines() if line]
    assert output_lines[0].startswith("ADDR")
    assert output_lines[1].startswith("200  12 00")
    assert "PC:200" in captured.err


def test_debug_runner_cycle_limit(tmp_path, capsys) -> None:
    rom_path = _write_rom(tmp_path / "count.ch8", bytes([0x70, 0x01, 0x12, 0x00]))

    exit_code = debug_runner.main(
        [
            "--program",
            str(rom_path),
            "--cycles",
            "20",
            "--dump-range",
            "0200:0200",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_CYCLE_LIMIT
    assert "cycle limit" in captured.err
    assert "V0:0A" in captured.err


def test_debug_runner_prints_screen(tmp_path, capsys) -> None:
    # Draw glyph 0 at the origin then spin.
    rom_path = _write_rom(tmp_path / "draw.ch8", bytes([0xD0, 0x05, 0x12, 0x02]))

    debug_runner.main(["--program", str(rom_path), "--cycles", "4", "--screen", "--dump-range", "0:0"])

    err_lines = capsys.readouterr().err.splitlines()
    assert "####" + "." * 60 in err_lines
    assert "#..#" + "." * 60 in err_lines
