# -*- coding: utf-8 -*-
"""Data structures for the render manifest (the JSON "recipe" of one chat video)."""
from typing import List, Optional, TypedDict, Literal

Speaker = Literal["SENDER", "RECEIVER"]

class Message(TypedDict, total=False):
    id: str                      # unique within the conversation
    speaker: Speaker             # SENDER = right/blue, RECEIVER = left/grey
    text: str
    delay_s: float               # seconds before the *next* message (default 3.0)
    read_receipt: Optional[str]  # e.g. "Read 7:43 PM"
    tapback: Optional[str]       # "like" | "love" | "laugh" | "emphasize" | "question" | None

class Canvas(TypedDict):
    width: int
    height: int
    fps: int
    dpr: int

class Background(TypedDict):
    type: str                    # only "solid"
    value: str                   # "#RRGGBB"

class Layout(TypedDict):
    mode: str                    # only "SINGLE"

class Meta(TypedDict, total=False):
    contactName: str
    timeLine: str                # time separator label, e.g. "Today 7:42 PM"
    avatar: Optional[str]        # image path or data: URL

class UISettings(TypedDict, total=False):
    hudWidthPct: float           # fraction of canvas width
    hudY: float                  # px from top (pre-scale)
    hudRadius: float
    headerH: float
    avatarPx: float
    iconPx: float
    chatMaxH: float
    bubbleMaxWidthPct: float     # fraction of HUD width
    bubbleRadius: float
    bubblePadH: float
    bubblePadV: float
    bubbleFontPx: float
    tsFontPx: float
    hudScalePct: float           # uniform scale of the whole HUD, in percent

class RenderManifest(TypedDict):
    kind: str                    # "FAKE_TEXT"
    canvas: Canvas
    background: Background
    layout: Layout
    messages: List[Message]
    meta: Meta
    settings: UISettings
