"""Tests for the fixed-cadence frame capture loop."""

import asyncio

import pytest

from chatreel.capture_loop import capture_frames, frame_count, frame_times
from chatreel.clock import ClockMode, DualModeClock
from chatreel.errors import CaptureFailure
from chatreel.surface import PresentationSurface

from conftest import FakeCapture


class RecordingClock(DualModeClock):
    """Export clock that fails the test if it is moved while a capture is pending."""

    def __init__(self, duration_ms, capture):
        super().__init__(duration_ms, mode=ClockMode.EXPORT, autoplay=False)
        self.capture = capture
        self.writes = []

    def set_export_time(self, time_ms):
        assert not self.capture.busy, "clock moved during a capture"
        self.writes.append(time_ms)
        super().set_export_time(time_ms)


def run_loop(manifest, fps, duration_ms, capture=None):
    capture = capture or FakeCapture()
    clock = RecordingClock(max(1, duration_ms), capture)
    surface = PresentationSurface(manifest, clock)
    frames = asyncio.run(capture_frames(clock, surface, capture, fps, duration_ms))
    return frames, capture, clock


class TestFrameTimes:
    """Cadence arithmetic."""

    def test_thirty_fps_hundred_ms(self):
        assert frame_count(30, 100) == 4
        assert frame_times(30, 100) == [0, 33, 67, 100]

    def test_final_frame_on_duration(self):
        assert frame_count(30, 1000) == 31
        assert frame_times(30, 1000)[-1] == 1000

    def test_duration_between_steps(self):
        assert frame_times(25, 130) == [0, 40, 80, 120]

    def test_zero_duration_single_frame(self):
        assert frame_times(30, 0) == [0]

    def test_bad_fps(self):
        with pytest.raises(ValueError):
            frame_count(0, 100)


class TestCaptureFrames:
    """Stepping the clock and capturing in lockstep."""

    def test_each_index_once_in_order(self, sample_manifest):
        frames, capture, clock = run_loop(sample_manifest, 30, 100)
        assert [f.index for f in frames] == [0, 1, 2, 3]
        assert [f.time_ms for f in frames] == [0, 33, 67, 100]
        assert clock.writes == [0, 33, 67, 100]
        assert [v.time_ms for v in capture.frames] == [0, 33, 67, 100]

    def test_frame_reflects_its_own_time(self, sample_manifest):
        frames, capture, _ = run_loop(sample_manifest, 10, 7500)
        by_time = {v.time_ms: v.visible for v in capture.frames}
        assert by_time[1900] == 1
        assert by_time[2000] == 2
        assert by_time[7000] == 3
        assert len(frames) == 76

    def test_images_kept_in_order(self, sample_manifest):
        frames, _, _ = run_loop(sample_manifest, 30, 100)
        assert frames[2].image == b"frame-2@67"

    def test_capture_error_aborts(self, sample_manifest):
        with pytest.raises(CaptureFailure) as exc:
            run_loop(sample_manifest, 30, 1000, FakeCapture(fail_at=5))
        assert exc.value.index == 5

    def test_empty_image_aborts(self, sample_manifest):
        capture = FakeCapture(empty_at=2)
        with pytest.raises(CaptureFailure):
            run_loop(sample_manifest, 30, 1000, capture)
        assert len(capture.frames) == 3
