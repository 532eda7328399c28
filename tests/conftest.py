"""Shared fakes for the chatreel tests (no network, no ffmpeg)."""

import asyncio
import io
import wave

import pytest

from chatreel.errors import SynthesisFailure
from chatreel.manifest import build_manifest
from chatreel.tts_client import Speech


def make_wav(duration_ms: int, rate: int = 8000) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(rate)
        wf.writeframes(b"\x00\x00" * (duration_ms * rate // 1000))
    return buf.getvalue()


class FakeSynth:
    """Returns one WAV per call with the next configured duration; can fail at a given call."""

    def __init__(self, durations, fail_at=None, exc=None, delay=0.0):
        self.durations = list(durations)
        self.fail_at = fail_at
        self.exc = exc or SynthesisFailure("TTS failed (500)", status=500)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def synthesize(self, text, voice_id):
        idx = len(self.calls)
        self.calls.append((text, voice_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_at is not None and idx == self.fail_at:
                raise self.exc
            d = self.durations[idx]
            return Speech(make_wav(d), d)
        finally:
            self.in_flight -= 1


class FakeCapture:
    """Records the frame description it was handed; returns a tiny fake image."""

    def __init__(self, fail_at=None, empty_at=None):
        self.frames = []
        self.fail_at = fail_at
        self.empty_at = empty_at
        self.busy = False

    async def capture(self, frame):
        idx = len(self.frames)
        self.frames.append(frame)
        self.busy = True
        try:
            await asyncio.sleep(0)
            if self.fail_at is not None and idx == self.fail_at:
                raise RuntimeError("canvas gone")
            if self.empty_at is not None and idx == self.empty_at:
                return b""
            return f"frame-{idx}@{frame.time_ms:.0f}".encode()
        finally:
            self.busy = False


class FakeEncoder:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def encode(self, frames, segments, fps, width, height):
        from chatreel.errors import EncodeFailure
        self.calls.append((list(frames), list(segments), fps, width, height))
        if self.fail:
            raise EncodeFailure("ffmpeg exited with 1")
        return b"MP4:" + str(len(frames)).encode()


@pytest.fixture
def sample_messages():
    return [
        {"id": "a", "speaker": "SENDER", "text": "Hey, you free?", "delay_s": 2},
        {"id": "b", "speaker": "RECEIVER", "text": "Yep! On my way.", "delay_s": 5},
        {"id": "c", "speaker": "SENDER", "text": "Great, see you soon."},
    ]


@pytest.fixture
def sample_manifest(sample_messages):
    return build_manifest(sample_messages, canvas={"width": 1080, "height": 1920, "fps": 30})


class FakeNow:
    """Controllable millisecond clock."""

    def __init__(self, t=0.0):
        self.t = float(t)

    def __call__(self):
        return self.t


@pytest.fixture
def fake_now():
    return FakeNow()
