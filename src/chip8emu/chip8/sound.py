"""CHIP-8 beeper driven by the sound timer."""

from __future__ import annotations

from array import array
from dataclasses import dataclass, field
from typing import List


@dataclass
class Chip8SoundProcessor:
    """Square-wave tone that plays while the sound timer is non-zero."""

    history: List[str] = field(default_factory=list)
    sample_rate: int = 44100
    frequency: float = 440.0
    volume: float = 0.3
    enable_audio: bool = False

    def __post_init__(self) -> None:
        self._audio_initialized: bool = False
        self._channel = None
        self._sound = None
        self._playing: bool = False

    @property
    def playing(self) -> bool:
        return self._playing

    # ------------------------------------------------------------------
    # CPU callbacks
    # ------------------------------------------------------------------
    def signal_sound_start(self) -> None:
        self.history.append("start")
        self._playing = True
        if not self._ensure_mixer():
            return
        self._channel.set_volume(self.volume)
        self._channel.play(self._sound, loops=-1)

    def signal_sound_stop(self) -> None:
        self.history.append("stop")
        self._playing = False
        if self._channel is not None:
            self._channel.stop()

    # ------------------------------------------------------------------
    # Audio control helpers
    # ------------------------------------------------------------------
    def _ensure_mixer(self) -> bool:
        if not self.enable_audio:
            return False
        if self._audio_initialized:
            return True
        try:
            import pygame  # type: ignore

            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._channel = pygame.mixer.Channel(0)
            self._sound = pygame.mixer.Sound(buffer=self._build_wave())
            self._audio_initialized = True
        except Exception:
            self.enable_audio = False
            self._channel = None
            self._sound = None
            self._audio_initialized = False
        return self._audio_initialized

    def _build_wave(self) -> array:
        """One period of a 16-bit signed square wave."""

        period = max(2, int(round(self.sample_rate / self.frequency)))
        half = period // 2
        amplitude = int(self.volume * 32767)
        samples = array("h", [amplitude] * half)
        samples.extend([-amplitude] * (period - half))
        return samples
