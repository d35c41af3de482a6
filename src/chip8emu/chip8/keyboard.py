"""CHIP-8 hexadecimal keypad."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Set

KEY_COUNT = 16

ReleaseListener = Callable[[int], None]


@dataclass
class Chip8Keyboard:
    """Pressed-key set for the 16-key keypad.

    Listeners registered with :meth:`add_release_listener` are told about
    every key release; the CPU uses this to finish an Fx0A wait.
    """

    _keys_down: Set[int] = field(default_factory=set)
    _release_listeners: List[ReleaseListener] = field(default_factory=list)
    last_released: int | None = None

    def is_pressed(self, key: int) -> bool:
        return key in self._keys_down

    def press(self, key: int) -> None:
        _check_key(key)
        self._keys_down.add(key)

    def release(self, key: int) -> None:
        _check_key(key)
        self._keys_down.discard(key)
        self.last_released = key
        for listener in list(self._release_listeners):
            listener(key)

    def pressed_keys(self) -> List[int]:
        return sorted(self._keys_down)

    def add_release_listener(self, listener: ReleaseListener) -> None:
        self._release_listeners.append(listener)

    def remove_release_listener(self, listener: ReleaseListener) -> None:
        self._release_listeners.remove(listener)

    def clear(self) -> None:
        self._keys_down.clear()
        self.last_released = None


def _check_key(key: int) -> None:
    if not (0 <= key < KEY_COUNT):
        raise ValueError(f"key out of range: {key}")
