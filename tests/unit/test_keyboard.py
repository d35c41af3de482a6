"""Tests for the CHIP-8 keypad."""

import pytest

from chip8emu.chip8.keyboard import Chip8Keyboard


def test_press_and_release_updates_state() -> None:
    kb = Chip8Keyboard()
    kb.press(0xA)
    assert kb.is_pressed(0xA)
    assert kb.pressed_keys() == [0xA]
    kb.release(0xA)
    assert not kb.is_pressed(0xA)
    assert kb.last_released == 0xA


def test_release_notifies_listeners() -> None:
    kb = Chip8Keyboard()
    seen = []
    kb.add_release_listener(seen.append)
    kb.press(3)
    assert seen == []
    kb.release(3)
    kb.release(4)
    assert seen == [3, 4]
    kb.remove_release_listener(seen.append)
    kb.release(5)
    assert seen == [3, 4]


@pytest.mark.parametrize("key", [-1, 16, 0x20])
def test_out_of_range_keys_rejected(key: int) -> None:
    kb = Chip8Keyboard()
    with pytest.raises(ValueError):
        kb.press(key)
    with pytest.raises(ValueError):
        kb.release(key)


def test_clear_drops_all_keys() -> None:
    kb = Chip8Keyboard()
    kb.press(1)
    kb.press(2)
    kb.clear()
    assert kb.pressed_keys() == []


def test_is_pressed_is_false_for_values_outside_keypad() -> None:
    kb = Chip8Keyboard()
    kb.press(0x0)
    assert kb.is_pressed(0x0)
    assert not kb.is_pressed(0x10)
