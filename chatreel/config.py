# -*- coding: utf-8 -*-
"""
Settings for the chat-story video maker.
"""
import os

# --- Speech API base URL (override with --api-base / env CHATREEL_API_BASE) ---
API_BASE_URL = os.environ.get("CHATREEL_API_BASE", "https://api.async.ai/v1")
API_KEY = os.environ.get("CHATREEL_API_KEY", "")
TTS_MODEL = "async-tts"
TTS_FORMAT = "wav"  # WAV so the real length can be read back with the wave module

# --- HTTP policy for the speech client ---
TTS_TIMEOUT = (5, 30)    # (connect, read) seconds
TTS_RETRIES = 2
TTS_BACKOFF = 0.8        # s, multiplied by attempt number
TTS_RETRY_STATUSES = (429, 500, 502, 503, 504)

# --- Canvas (design coordinate space) ---
DEFAULT_CANVAS = {"width": 1080, "height": 1920, "fps": 30, "dpr": 2}
DEFAULT_BACKGROUND = "#D0021B"
JPEG_QUALITY = 85

# --- Default contact header ---
DEFAULT_META = {"contactName": "Anna", "timeLine": "Today 7:42 PM"}

# --- HUD metrics (pixels at the 1080x1920 reference, before hudScalePct) ---
DEFAULT_SETTINGS = {
    "hudWidthPct": 0.60,
    "hudY": 110,
    "hudRadius": 25,
    "headerH": 92,
    "avatarPx": 52,
    "iconPx": 36,
    "chatMaxH": 320,
    "bubbleMaxWidthPct": 0.90,
    "bubbleRadius": 18,
    "bubblePadH": 18,
    "bubblePadV": 12,
    "bubbleFontPx": 22,
    "tsFontPx": 13,
    "hudScalePct": 100,
}

# (min, max) per setting; None means unbounded
SETTING_RANGES = {
    "hudWidthPct": (0.50, 0.95),
    "hudY": (0, None),
    "hudRadius": (0, 44),
    "headerH": (0, None),
    "avatarPx": (0, None),
    "iconPx": (0, None),
    "chatMaxH": (0, None),
    "bubbleMaxWidthPct": (0.60, 0.95),
    "bubbleRadius": (0, None),
    "bubblePadH": (0, None),
    "bubblePadV": (0, None),
    "bubbleFontPx": (1, None),
    "tsFontPx": (1, None),
    "hudScalePct": (75, 140),
}

# --- Timeline ---
DEFAULT_DELAY_SEC = 3.0
REVEAL_TOLERANCE_MS = 0.5   # reveal times are whole ms; absorbs sub-ms clock jitter only
MIN_EXPORT_DELAY_SEC = 0.01
NATURAL_TAIL_MS = 1500
NATURAL_MIN_MS = 3000
LOOP_HOLD_MS = 500
TICK_INTERVAL_SEC = 1 / 60

# --- Chat growth tween ---
TWEEN_STEPS = 10
TWEEN_STEP_MS = 28

# --- Voices ---
FALLBACK_VOICES = ["adam", "alloy", "verse", "aria", "coral", "sage", "amber", "onyx", "rose", "pearl", "opal"]
MAX_VOICES = 64
TAPBACKS = ("like", "love", "laugh", "emphasize", "question")

# --- Fonts tried in order by the rasterizer ---
FONT_CANDIDATES = [
    "/System/Library/Fonts/SFNS.ttf",
    "/usr/share/fonts/truetype/inter/Inter-Regular.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/mnt/c/Windows/Fonts/segoeui.ttf",
]
