"""Tests for the interactive preview session and its ticker."""

import asyncio

import pytest

from chatreel.manifest import build_manifest
from chatreel.preview import InteractivePreview, fmt_time


class TestTransport:
    """Seek, labels and manifest swaps."""

    def test_duration_and_labels(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        assert p.duration_ms == 11_500
        p.seek_ratio(0.5)
        assert p.clock.time_ms == 5750
        assert p.time_label() == "0:05"
        assert p.duration_label() == "0:11"
        assert p.frame().visible == 2

    def test_seek_step(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        p.seek_step()
        assert p.clock.time_ms == 230
        p.seek_step(-1)
        assert p.clock.time_ms == 0

    def test_seek_emits_frame(self, sample_manifest, fake_now):
        seen = []
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        p.start(seen.append)
        p.seek_ratio(1.0)
        assert [f.visible for f in seen] == [1, 3]

    def test_update_manifest_follows_new_schedule(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        p.clock.seek(2500)
        assert p.frame().visible == 2
        retimed = build_manifest([{**m, "delay_s": 1} for m in sample_manifest["messages"]])
        p.update_manifest(retimed)
        assert p.frame().visible == 3
        assert p.duration_ms == 4500

    def test_update_manifest_clamps_time(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        p.clock.seek(11_000)
        p.update_manifest(build_manifest([{"id": "x", "text": "only"}]))
        assert p.clock.time_ms == p.duration_ms == 4500

    def test_loops_after_hold(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now)
        fake_now.t = 11_999
        p.clock.tick()
        assert p.frame().visible == 3
        fake_now.t = 12_000
        p.clock.tick()
        assert p.clock.time_ms == 0
        assert p.frame().visible == 1

    def test_fmt_time(self):
        assert fmt_time(0) == "0:00"
        assert fmt_time(61_000) == "1:01"
        assert fmt_time(-5) == "0:00"


class TestTicker:
    """The recurring callback is cancelled on pause and close."""

    def test_ticks_then_stops_on_pause(self, sample_manifest):
        frames = []

        async def scenario():
            p = InteractivePreview(sample_manifest)
            p.start(frames.append, interval=0.001)
            await asyncio.sleep(0.05)
            assert p.ticking
            p.toggle_play()
            await asyncio.sleep(0)
            assert not p.ticking
            count = len(frames)
            await asyncio.sleep(0.02)
            assert len(frames) == count
            return p

        p = asyncio.run(scenario())
        assert len(frames) > 2
        assert not p.clock.playing

    def test_resume_and_close(self, sample_manifest):
        async def scenario():
            p = InteractivePreview(sample_manifest, autoplay=False)
            assert p.start() is None
            assert p.toggle_play() is True
            await asyncio.sleep(0.01)
            assert p.ticking
            p.close()
            await asyncio.sleep(0)
            return p

        p = asyncio.run(scenario())
        assert not p.ticking
        assert not p.clock.playing

    def test_play_without_event_loop_leaves_clock_paused(self, sample_manifest, fake_now):
        p = InteractivePreview(sample_manifest, now=fake_now, autoplay=False)
        with pytest.raises(RuntimeError):
            p.toggle_play()
        assert not p.clock.playing
        assert not p.ticking
