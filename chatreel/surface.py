# -*- coding: utf-8 -*-
"""
Presentation surface: (manifest, timeline time) -> positioned boxes for one frame.

All metrics come from manifest["settings"] through one uniform scale factor
(hudScalePct), so a small preview and the full export canvas lay out identically.
Nothing here depends on the clock mode; the surface only reads a time value.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from . import config
from .manifest import clamp_settings
from .schedule import ScheduleEntry, build_schedule, visible_count
from .schema import Message, RenderManifest

# ---- colours ----
BLUE = "#0A84FF"
RECEIVER_BG = "#1C1C1E"
BUBBLE_FG = "#FFFFFF"
HUD_BG = "#0A0A0A"
HEADER_BG = "#1F1F20"
HEADER_BORDER = "#2A2A2A"
TS_COLOR = "#A9A9AD"
NAME_COLOR = "#F5F5F7"
AVATAR_BG = "#C7C7CC"

LINE_HEIGHT = 1.22
CHAR_WIDTH = 0.55     # average glyph advance as a fraction of the font size
BUBBLE_GAP = 12
MIN_CHAT_H = 100
TAPBACK_GLYPHS = {"like": "+1", "love": "\u2665", "laugh": "ha", "emphasize": "!!", "question": "?"}


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def initials(name: str) -> str:
    words = name.strip().split()
    return words[0][0].upper() if words else ""


@dataclass(frozen=True)
class LayoutMetrics:
    scale: float
    hud_x: int
    hud_y: int
    hud_w: int
    hud_radius: int
    header_h: int
    avatar: int
    icon: int
    chat_max: int
    bubble_max_pct: float
    bubble_radius: int
    bubble_pad_h: int
    bubble_pad_v: int
    bubble_font: int
    ts_font: int
    name_font: int
    chat_pad_top: int
    chat_pad_x: int
    chat_pad_bottom: int
    ts_pad_top: int
    ts_pad_bottom: int
    max_chat_h: int
    initial_chat_h: int


def layout_metrics(settings: Optional[Mapping], width: int, height: int) -> LayoutMetrics:
    s = clamp_settings(dict(settings or {}))
    S = s["hudScalePct"] / 100.0
    base_w = round(width * clamp01(s["hudWidthPct"]))
    hud_w = min(width - 24, max(300, round(base_w * S)))
    hud_y = round(s["hudY"] * S)
    header_h = max(40, round(s["headerH"] * S))
    chat_max = max(120, round(s["chatMaxH"] * S))
    max_chat_h = min(chat_max, math.floor(height * 0.85 - header_h - hud_y))
    return LayoutMetrics(
        scale=S,
        hud_x=round((width - hud_w) / 2),
        hud_y=hud_y,
        hud_w=hud_w,
        hud_radius=round(s["hudRadius"] * S),
        header_h=header_h,
        avatar=round(s["avatarPx"] * S),
        icon=round(s["iconPx"] * S),
        chat_max=chat_max,
        bubble_max_pct=clamp01(s["bubbleMaxWidthPct"]),
        bubble_radius=round(s["bubbleRadius"] * S),
        bubble_pad_h=round(s["bubblePadH"] * S),
        bubble_pad_v=round(s["bubblePadV"] * S),
        bubble_font=max(1, round(s["bubbleFontPx"] * S)),
        ts_font=max(1, round(s["tsFontPx"] * S)),
        name_font=round(20 * S),
        chat_pad_top=round(12 * S),
        chat_pad_x=round(16 * S),
        chat_pad_bottom=round(24 * S),
        ts_pad_top=round(6 * S),
        ts_pad_bottom=round(10 * S),
        max_chat_h=max(MIN_CHAT_H, max_chat_h),
        initial_chat_h=round(max(100, min(300, chat_max * 0.5))),
    )


# ---- text measurement ----
def text_width(text: str, font_px: int) -> float:
    return len(text) * font_px * CHAR_WIDTH


def wrap_text(text: str, font_px: int, max_w: float) -> List[str]:
    """Greedy word wrap; explicit newlines are kept, over-long words are split."""
    out: List[str] = []
    for para in text.split("\n"):
        buf = ""
        for word in para.split(" "):
            test = word if not buf else f"{buf} {word}"
            if text_width(test, font_px) <= max_w or not buf:
                buf = test
            else:
                out.append(buf)
                buf = word
            while text_width(buf, font_px) > max_w and len(buf) > 1:
                n = max(1, int(max_w // (font_px * CHAR_WIDTH)))
                out.append(buf[:n])
                buf = buf[n:]
        out.append(buf)
    return out


# ---- frame description ----
@dataclass(frozen=True)
class Box:
    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class Bubble:
    message_id: str
    speaker: str
    lines: Tuple[str, ...]
    box: Box
    fill: str
    font_px: int
    line_h: int
    radius: int
    pad_h: int
    pad_v: int
    read_receipt: Optional[str] = None
    tapback: Optional[str] = None


@dataclass(frozen=True)
class SurfaceFrame:
    width: int
    height: int
    time_ms: float
    visible: int
    background: str
    metrics: LayoutMetrics
    hud: Box
    chat: Box
    contact_name: str
    avatar: Optional[str]
    avatar_initials: str
    time_separator: str
    time_separator_y: int
    bubbles: Tuple[Bubble, ...] = field(default_factory=tuple)


def _bubble_sizes(messages: Sequence[Message], m: LayoutMetrics) -> List[Tuple[Tuple[str, ...], int, int, int]]:
    """(lines, w, h, row_h) per message. row_h includes the gap and the receipt caption."""
    inner_w = m.hud_w - 2 * m.chat_pad_x
    max_w = inner_w * m.bubble_max_pct
    line_h = round(m.bubble_font * LINE_HEIGHT)
    out = []
    for msg in messages:
        lines = tuple(wrap_text(msg.get("text", ""), m.bubble_font, max_w - 2 * m.bubble_pad_h))
        w = round(min(max_w, max(text_width(ln, m.bubble_font) for ln in lines) + 2 * m.bubble_pad_h))
        h = len(lines) * line_h + 2 * m.bubble_pad_v
        row = BUBBLE_GAP + h
        if msg.get("read_receipt"):
            row += round(m.ts_font * LINE_HEIGHT) + 4
        out.append((lines, w, h, row))
    return out


def _separator_h(m: LayoutMetrics) -> int:
    return m.ts_pad_top + round(m.ts_font * LINE_HEIGHT) + m.ts_pad_bottom


def chat_height(schedule: Sequence[ScheduleEntry], rows: Sequence[int], m: LayoutMetrics,
                time_ms: float, visible: int) -> int:
    """
    Height of the chat body at time_ms. Every reveal starts a tween from the current
    height to the new content height in TWEEN_STEPS steps of TWEEN_STEP_MS.
    """
    sep = _separator_h(m)

    def target(n: int) -> int:
        content = min(m.max_chat_h, sep + sum(rows[:n]) + 12)
        return max(MIN_CHAT_H, min(content, m.max_chat_h))

    h = float(m.initial_chat_h)
    steps, dt = config.TWEEN_STEPS, config.TWEEN_STEP_MS
    for j in range(visible):
        start = schedule[j].at
        until = time_ms if j == visible - 1 else min(time_ms, schedule[j + 1].at)
        to = target(j + 1)
        if abs(to - h) < 1:
            continue
        i = math.floor((until - start) / dt)
        if i >= steps:
            h = to
        elif i > 0:
            h = round(lerp(h, to, i / steps))
    return round(h)


def describe(manifest: RenderManifest, time_ms: float,
             schedule: Optional[Sequence[ScheduleEntry]] = None) -> SurfaceFrame:
    cv = manifest["canvas"]
    W, H = int(cv["width"]), int(cv["height"])
    m = layout_metrics(manifest.get("settings"), W, H)
    messages = manifest.get("messages") or []
    if schedule is None:
        schedule = build_schedule(messages)
    visible = visible_count(schedule, time_ms)

    sizes = _bubble_sizes(messages[:visible], m)
    rows = [s[3] for s in sizes]
    body_h = chat_height(schedule, rows, m, time_ms, visible)

    hud_h = m.header_h + body_h
    hud = Box(m.hud_x, m.hud_y, m.hud_w, hud_h)
    chat = Box(m.hud_x, m.hud_y + m.header_h, m.hud_w, body_h)

    # content taller than the body scrolls so the newest bubble stays in view
    content_h = _separator_h(m) + sum(rows)
    room = body_h - m.chat_pad_top - m.chat_pad_bottom
    scroll = max(0, content_h - room)

    y = chat.y + m.chat_pad_top - scroll
    ts_y = y + m.ts_pad_top
    y += _separator_h(m)

    left = chat.x + m.chat_pad_x
    right = chat.x + chat.w - m.chat_pad_x
    line_h = round(m.bubble_font * LINE_HEIGHT)
    bubbles = []
    for msg, (lines, w, h, row) in zip(messages, sizes):
        y += BUBBLE_GAP
        sender = msg.get("speaker") == "SENDER"
        x = right - w if sender else left
        bubbles.append(Bubble(
            message_id=msg.get("id", ""),
            speaker=msg.get("speaker", "SENDER"),
            lines=lines,
            box=Box(x, y, w, h),
            fill=BLUE if sender else RECEIVER_BG,
            font_px=m.bubble_font,
            line_h=line_h,
            radius=m.bubble_radius,
            pad_h=m.bubble_pad_h,
            pad_v=m.bubble_pad_v,
            read_receipt=msg.get("read_receipt"),
            tapback=msg.get("tapback"),
        ))
        y += row - BUBBLE_GAP

    meta = manifest.get("meta") or {}
    name = meta.get("contactName", "")
    return SurfaceFrame(
        width=W,
        height=H,
        time_ms=time_ms,
        visible=visible,
        background=manifest["background"]["value"],
        metrics=m,
        hud=hud,
        chat=chat,
        contact_name=name,
        avatar=meta.get("avatar"),
        avatar_initials=initials(name),
        time_separator=meta.get("timeLine", ""),
        time_separator_y=ts_y,
        bubbles=tuple(bubbles),
    )


class PresentationSurface:
    """Binds one manifest to the clock it reads; the schedule is computed once."""

    def __init__(self, manifest: RenderManifest, clock):
        self.manifest = manifest
        self.clock = clock
        self.schedule = build_schedule(manifest.get("messages") or [])

    def frame(self) -> SurfaceFrame:
        return describe(self.manifest, self.clock.time_ms, self.schedule)
