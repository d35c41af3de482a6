"""Sound processor tests."""

from __future__ import annotations

import sys

import pytest

from chip8emu.chip8.sound import Chip8SoundProcessor


class DummySound:
    def __init__(self, buffer):
        self.buffer = buffer


class DummyChannel:
    def __init__(self, mixer):
        self.mixer = mixer

    def play(self, sound, loops=0):
        self.mixer.last_sound = sound
        self.mixer.last_loops = loops

    def set_volume(self, volume):
        self.mixer.last_volume = volume

    def stop(self):
        self.mixer.stopped = True


class DummyMixer:
    def __init__(self):
        self.initialized = False
        self.last_sound = None
        self.last_volume = None
        self.last_loops = None
        self.stopped = False

    def init(self, **kwargs):
        self.initialized = True

    def get_init(self):
        return self.initialized

    def Channel(self, index):
        return DummyChannel(self)

    def Sound(self, *args, **kwargs):
        buffer = kwargs.get("buffer") or (args[0] if args else None)
        return DummySound(buffer)


class DummyPygame:
    def __init__(self):
        self.mixer = DummyMixer()


class BrokenMixer(DummyMixer):
    def init(self, **kwargs):
        raise RuntimeError("no audio device")


def test_sound_processor_history_only() -> None:
    sp = Chip8SoundProcessor()
    sp.signal_sound_start()
    assert sp.playing is True
    sp.signal_sound_stop()
    assert sp.playing is False
    assert sp.history == ["start", "stop"]


def test_sound_processor_audio(monkeypatch) -> None:
    dummy = DummyPygame()
    monkeypatch.setitem(sys.modules, "pygame", dummy)

    sp = Chip8SoundProcessor(enable_audio=True)
    sp.signal_sound_start()
    assert dummy.mixer.initialized is True
    assert dummy.mixer.last_sound is not None
    assert dummy.mixer.last_loops == -1
    assert dummy.mixer.last_volume == pytest.approx(sp.volume)
    sp.signal_sound_stop()
    assert dummy.mixer.stopped is True


def test_sound_processor_disables_audio_when_mixer_fails(monkeypatch) -> None:
    dummy = DummyPygame()
    dummy.mixer = BrokenMixer()
    monkeypatch.setitem(sys.modules, "pygame", dummy)

    sp = Chip8SoundProcessor(enable_audio=True)
    sp.signal_sound_start()
    assert sp.enable_audio is False
    assert sp.history == ["start"]
    sp.signal_sound_stop()
    assert sp.history == ["start", "stop"]


def test_square_wave_has_one_period() -> None:
    sp = Chip8SoundProcessor(sample_rate=8000, frequency=400.0, volume=0.5)
    wave = sp._build_wave()
    assert len(wave) == 20
    assert wave[0] == 16383
    assert wave[-1] == -16383
