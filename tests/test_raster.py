"""Tests for the Pillow rasterizer (real drawing on small canvases)."""

import asyncio
import base64
import io

import pytest
from PIL import Image

from chatreel.errors import CaptureFailure
from chatreel.manifest import build_manifest
from chatreel.raster import PillowCapture, load_avatar, rasterize
from chatreel.surface import describe


@pytest.fixture
def small_manifest(sample_messages):
    sample_messages[1]["tapback"] = "love"
    sample_messages[2]["read_receipt"] = "Read 7:43 PM"
    return build_manifest(sample_messages, canvas={"width": 270, "height": 480, "fps": 30}, bg_color="#00FF00")


def data_url(color="red", size=(40, 30)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, "PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


class TestRasterize:
    """Drawing a frame description."""

    def test_canvas_size_and_background(self, small_manifest):
        img = rasterize(describe(small_manifest, 9000))
        assert img.size == (270, 480)
        r, g, b = img.getpixel((2, 470))
        assert g > 200 and r < 60 and b < 60

    def test_hud_is_drawn_over_background(self, small_manifest):
        frame = describe(small_manifest, 0)
        img = rasterize(frame)
        x = frame.hud.x + frame.hud.w // 2
        y = frame.chat.y + frame.chat.h - 2
        assert img.getpixel((x, y)) == (10, 10, 10)

    def test_time_changes_pixels(self, small_manifest):
        a = rasterize(describe(small_manifest, 0)).tobytes()
        b = rasterize(describe(small_manifest, 9000)).tobytes()
        assert a != b

    def test_same_frame_same_pixels(self, small_manifest):
        frame = describe(small_manifest, 2500)
        assert rasterize(frame).tobytes() == rasterize(frame).tobytes()

    def test_empty_conversation(self):
        img = rasterize(describe(build_manifest([], canvas={"width": 270, "height": 480}), 0))
        assert img.size == (270, 480)


class TestAvatar:
    def test_data_url_avatar(self):
        av = load_avatar(data_url(), 20)
        assert av.size == (20, 20)
        assert av.getpixel((0, 0))[3] == 0
        assert av.getpixel((10, 10))[:3] == (255, 0, 0)

    def test_broken_avatar_falls_back(self, sample_messages):
        m = build_manifest(sample_messages, canvas={"width": 270, "height": 480}, avatar="data:image/png;base64,AAAA")
        assert load_avatar("data:image/png;base64,AAAA", 20) is None
        assert rasterize(describe(m, 0)).size == (270, 480)

    def test_avatar_drawn(self, sample_messages):
        m = build_manifest(sample_messages, canvas={"width": 1080, "height": 1920}, avatar=data_url("blue"))
        frame = describe(m, 0)
        img = rasterize(frame)
        cx = frame.hud.x + frame.hud.w // 2
        mt = frame.metrics
        cy = frame.hud.y + max(0, (mt.header_h - (mt.avatar + 6 + mt.name_font)) // 2) + mt.avatar // 2
        r, g, b = img.getpixel((cx, cy))
        assert b > 200 and r < 40


class TestPillowCapture:
    def test_jpeg_bytes(self, small_manifest):
        data = PillowCapture().capture_sync(describe(small_manifest, 0))
        assert data[:2] == b"\xff\xd8"
        assert Image.open(io.BytesIO(data)).size == (270, 480)

    def test_async_capture(self, small_manifest):
        data = asyncio.run(PillowCapture(quality=50).capture(describe(small_manifest, 100)))
        assert data[:2] == b"\xff\xd8"

    def test_empty_output_is_a_failure(self, small_manifest, monkeypatch):
        monkeypatch.setattr("chatreel.raster.to_jpeg", lambda img, quality: b"")
        with pytest.raises(CaptureFailure):
            PillowCapture().capture_sync(describe(small_manifest, 0))
