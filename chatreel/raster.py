# -*- coding: utf-8 -*-
"""
Frame capture: rasterize a SurfaceFrame with Pillow and encode it as JPEG.
The drawing code only reads the frame description, never the clock.
"""
from __future__ import annotations

import asyncio
import base64
import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from . import config
from .errors import CaptureFailure
from .surface import (
    AVATAR_BG, BLUE, BUBBLE_FG, HEADER_BG, HEADER_BORDER, HUD_BG, NAME_COLOR,
    TAPBACK_GLYPHS, TS_COLOR, SurfaceFrame,
)

logger = logging.getLogger("chatreel.raster")


@lru_cache(maxsize=64)
def load_font(size: int, font_path: Optional[str] = None):
    cands = [font_path] if font_path else []
    cands += config.FONT_CANDIDATES
    for p in cands:
        try:
            if p and Path(p).exists():
                return ImageFont.truetype(p, max(1, size))
        except OSError:
            continue
    try:
        return ImageFont.truetype("DejaVuSans.ttf", max(1, size))
    except OSError:
        return ImageFont.load_default(max(1, size))


@lru_cache(maxsize=8)
def load_avatar(src: str, size: int) -> Optional[Image.Image]:
    """Avatar from a file path or a data: URL, cropped to a circle."""
    try:
        if src.startswith("data:"):
            raw = base64.b64decode(src.split(",", 1)[1])
            im = Image.open(io.BytesIO(raw))
        else:
            im = Image.open(src)
        im = im.convert("RGBA")
    except (OSError, ValueError, IndexError) as e:
        logger.warning("avatar could not be loaded (%s), using initials", e)
        return None
    # object-fit: cover
    side = min(im.width, im.height)
    left, top = (im.width - side) // 2, (im.height - side) // 2
    im = im.crop((left, top, left + side, top + side)).resize((size, size), Image.LANCZOS)
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    im.putalpha(mask)
    return im


def _chevron(draw: ImageDraw.ImageDraw, cx: int, cy: int, size: int, color: str):
    w = max(2, size // 9)
    half = size // 2
    q = size // 4
    draw.line([(cx + q // 2, cy - half + q), (cx - q, cy), (cx + q // 2, cy + half - q)],
              fill=color, width=w, joint="curve")


def _facetime(draw: ImageDraw.ImageDraw, cx: int, cy: int, size: int, color: str):
    w = max(2, size // 9)
    bw, bh = int(size * 0.62), int(size * 0.5)
    x0, y0 = cx - size // 2, cy - bh // 2
    draw.rounded_rectangle((x0, y0, x0 + bw, y0 + bh), radius=max(1, size // 8), outline=color, width=w)
    lens = [(x0 + bw + w, cy - bh // 6), (cx + size // 2, cy - bh // 2), (cx + size // 2, cy + bh // 2), (x0 + bw + w, cy + bh // 6)]
    draw.polygon(lens, outline=color, width=w)


def rasterize(frame: SurfaceFrame, font_path: Optional[str] = None) -> Image.Image:
    m = frame.metrics
    img = Image.new("RGB", (frame.width, frame.height), frame.background)

    # HUD layer, drawn separately so the rounded panel clips its content
    hud = Image.new("RGBA", (frame.hud.w, frame.hud.h), HUD_BG)
    d = ImageDraw.Draw(hud)

    # header
    d.rectangle((0, 0, frame.hud.w, m.header_h - 1), fill=HEADER_BG)
    d.line((0, m.header_h - 1, frame.hud.w, m.header_h - 1), fill=HEADER_BORDER, width=1)
    icon_cy = m.header_h // 2
    _chevron(d, 16 + (m.icon + 22) // 2, icon_cy, m.icon, BLUE)
    _facetime(d, frame.hud.w - 16 - (m.icon + 22) // 2, icon_cy, m.icon, BLUE)

    name_font = load_font(max(1, m.name_font), font_path)
    block_h = m.avatar + 6 + m.name_font
    av_x = (frame.hud.w - m.avatar) // 2
    av_y = max(0, (m.header_h - block_h) // 2)
    avatar = load_avatar(frame.avatar, m.avatar) if frame.avatar and m.avatar > 0 else None
    if avatar is not None:
        hud.alpha_composite(avatar, (av_x, av_y))
    else:
        d.ellipse((av_x, av_y, av_x + m.avatar, av_y + m.avatar), fill=AVATAR_BG)
        d.text((av_x + m.avatar // 2, av_y + m.avatar // 2), frame.avatar_initials,
               font=load_font(max(1, m.avatar // 2), font_path), fill="#FFFFFF", anchor="mm")
    d.text((frame.hud.w // 2, av_y + m.avatar + 6), f"{frame.contact_name} ›",
           font=name_font, fill=NAME_COLOR, anchor="ma")

    # chat body (coordinates relative to the HUD)
    ox, oy = frame.hud.x, frame.hud.y
    body_top = m.header_h
    chat = Image.new("RGBA", (frame.chat.w, max(1, frame.chat.h)), HUD_BG)
    c = ImageDraw.Draw(chat)
    cy0 = frame.chat.y
    c.text((frame.chat.w // 2, frame.time_separator_y - cy0), frame.time_separator,
           font=load_font(m.ts_font, font_path), fill=TS_COLOR, anchor="ma")
    for b in frame.bubbles:
        x, y = b.box.x - frame.chat.x, b.box.y - cy0
        c.rounded_rectangle((x, y, x + b.box.w, y + b.box.h), radius=b.radius, fill=b.fill)
        font = load_font(b.font_px, font_path)
        for i, line in enumerate(b.lines):
            c.text((x + b.pad_h, y + b.pad_v + i * b.line_h), line, font=font, fill=BUBBLE_FG)
        if b.tapback:
            r = max(6, b.font_px // 2 + 4)
            tx = x - r // 2 if b.speaker == "SENDER" else x + b.box.w - r - r // 2
            ty = y - r // 2
            c.ellipse((tx, ty, tx + 2 * r, ty + 2 * r), fill="#2C2C2E", outline=HUD_BG, width=2)
            c.text((tx + r, ty + r), TAPBACK_GLYPHS.get(b.tapback, "?"),
                   font=load_font(max(1, r), font_path), fill="#FFFFFF", anchor="mm")
        if b.read_receipt:
            rx = x + b.box.w if b.speaker == "SENDER" else x
            c.text((rx, y + b.box.h + 4), b.read_receipt, font=load_font(m.ts_font, font_path),
                   fill=TS_COLOR, anchor="ra" if b.speaker == "SENDER" else "la")
    hud.alpha_composite(chat, (0, body_top))

    mask = Image.new("L", (frame.hud.w, frame.hud.h), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, frame.hud.w - 1, frame.hud.h - 1), radius=m.hud_radius, fill=255)
    img.paste(hud.convert("RGB"), (ox, oy), mask)
    return img


def to_jpeg(img: Image.Image, quality: int = config.JPEG_QUALITY) -> bytes:
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=quality)
    return buf.getvalue()


class PillowCapture:
    """Frame capture backed by Pillow. One call = one JPEG of the given frame."""

    def __init__(self, quality: int = config.JPEG_QUALITY, font_path: Optional[str] = None):
        self.quality = quality
        self.font_path = font_path

    def capture_sync(self, frame: SurfaceFrame) -> bytes:
        data = to_jpeg(rasterize(frame, self.font_path), self.quality)
        if not data:
            raise CaptureFailure(f"rasterizer returned no data at t={frame.time_ms:.0f}ms")
        return data

    async def capture(self, frame: SurfaceFrame) -> bytes:
        # frames are immutable, so rasterizing off the loop thread is safe
        return await asyncio.to_thread(self.capture_sync, frame)
