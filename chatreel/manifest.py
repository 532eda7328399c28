# -*- coding: utf-8 -*-
"""
Render manifest: the single source of truth for one render.
- defaults and validation of editor-produced data
- JSON load / save (render-manifest.json)
- small pure transforms on message lists (swap speakers, reset delays ...)
"""
from __future__ import annotations

import copy
import json
import logging
import math
import secrets
import string
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .errors import ScheduleInputError
from .schema import Message, RenderManifest, UISettings

logger = logging.getLogger("chatreel.manifest")

SPEAKERS = ("SENDER", "RECEIVER")
MANIFEST_KIND = "FAKE_TEXT"


def new_id(n: int = 8) -> str:
    a = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(a) for _ in range(n))


def clamp(x: float, a: Optional[float], b: Optional[float]) -> float:
    if a is not None:
        x = max(a, x)
    if b is not None:
        x = min(b, x)
    return x


def clamp_settings(settings: Optional[Dict[str, Any]]) -> UISettings:
    """
    Fill missing keys from DEFAULT_SETTINGS and clamp every value into its valid range.
    Non-numeric values fall back to the default instead of failing.
    """
    out: Dict[str, float] = {}
    src = settings or {}
    for key, default in config.DEFAULT_SETTINGS.items():
        v = src.get(key, default)
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            v = default
        lo, hi = config.SETTING_RANGES.get(key, (None, None))
        out[key] = clamp(float(v), lo, hi)
    return out  # type: ignore[return-value]


# ---- messages ----
def normalize_message(raw: Any, index: int) -> Message:
    if not isinstance(raw, dict):
        raise ScheduleInputError(f"message #{index} is not an object: {raw!r}")
    speaker = str(raw.get("speaker", "SENDER")).upper()
    if speaker not in SPEAKERS:
        raise ScheduleInputError(f"message #{index}: unknown speaker {raw.get('speaker')!r}")
    text = raw.get("text", "")
    if not isinstance(text, str):
        raise ScheduleInputError(f"message #{index}: text must be a string")

    msg: Message = {"id": str(raw.get("id") or new_id()), "speaker": speaker, "text": text}

    # accept the camelCase spelling as well
    delay = raw.get("delay_s", raw.get("delaySeconds"))
    if delay is not None:
        if isinstance(delay, bool) or not isinstance(delay, (int, float)):
            raise ScheduleInputError(f"message #{index}: delay_s must be a number")
        msg["delay_s"] = float(delay)

    receipt = raw.get("read_receipt", raw.get("readReceipt"))
    if receipt:
        msg["read_receipt"] = str(receipt)

    tapback = raw.get("tapback")
    if tapback:
        tapback = str(tapback).lower()
        if tapback not in config.TAPBACKS:
            raise ScheduleInputError(f"message #{index}: unknown tapback {tapback!r}")
        msg["tapback"] = tapback
    return msg


def normalize_messages(raw: Any) -> List[Message]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ScheduleInputError("messages must be a list")
    msgs = [normalize_message(m, i) for i, m in enumerate(raw)]
    seen = set()
    for m in msgs:
        if m["id"] in seen:
            raise ScheduleInputError(f"duplicate message id {m['id']!r}")
        seen.add(m["id"])
    return msgs


# ---- manifest ----
def build_manifest(
    messages: Any,
    contact_name: str = config.DEFAULT_META["contactName"],
    time_line: str = config.DEFAULT_META["timeLine"],
    avatar: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None,
    bg_color: str = config.DEFAULT_BACKGROUND,
    canvas: Optional[Dict[str, int]] = None,
) -> RenderManifest:
    cv = dict(config.DEFAULT_CANVAS)
    cv.update(canvas or {})
    for key in ("width", "height", "fps"):
        if int(cv[key]) <= 0:
            raise ScheduleInputError(f"canvas.{key} must be positive")
    meta = {"contactName": contact_name, "timeLine": time_line}
    if avatar:
        meta["avatar"] = avatar
    return {
        "kind": MANIFEST_KIND,
        "canvas": {"width": int(cv["width"]), "height": int(cv["height"]),
                   "fps": int(cv["fps"]), "dpr": int(cv.get("dpr", 1))},
        "background": {"type": "solid", "value": bg_color},
        "layout": {"mode": "SINGLE"},
        "messages": normalize_messages(messages),
        "meta": meta,
        "settings": clamp_settings(settings),
    }


def from_dict(data: Dict[str, Any]) -> RenderManifest:
    if not isinstance(data, dict):
        raise ScheduleInputError("manifest must be a JSON object")
    kind = data.get("kind", MANIFEST_KIND)
    if kind != MANIFEST_KIND:
        raise ScheduleInputError(f"unsupported manifest kind {kind!r}")
    meta = data.get("meta") or {}
    bg = data.get("background") or {}
    return build_manifest(
        data.get("messages"),
        contact_name=meta.get("contactName", config.DEFAULT_META["contactName"]),
        time_line=meta.get("timeLine", config.DEFAULT_META["timeLine"]),
        avatar=meta.get("avatar"),
        settings=data.get("settings"),
        bg_color=bg.get("value", config.DEFAULT_BACKGROUND),
        canvas=data.get("canvas"),
    )


def snapshot(manifest: RenderManifest) -> RenderManifest:
    """Deep copy taken at the start of a render, so editor changes can't leak into it."""
    return copy.deepcopy(manifest)


def load_manifest(path: str | Path) -> RenderManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    manifest = from_dict(data)
    logger.debug("loaded manifest %s (%d messages)", path, len(manifest["messages"]))
    return manifest


def save_manifest(manifest: RenderManifest, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(manifest, ensure_ascii=False, indent=2), encoding="utf-8")
    return p


def with_messages(manifest: RenderManifest, messages: List[Message]) -> RenderManifest:
    out = snapshot(manifest)
    out["messages"] = copy.deepcopy(messages)
    return out


# ---- editor transforms (pure; always return new lists) ----
def swap_speakers(messages: List[Message]) -> List[Message]:
    return [{**m, "speaker": "RECEIVER" if m["speaker"] == "SENDER" else "SENDER"} for m in messages]


def reset_delays(messages: List[Message]) -> List[Message]:
    out = []
    for m in messages:
        c = dict(m)
        c.pop("delay_s", None)
        out.append(c)
    return out


def clear_tapbacks(messages: List[Message]) -> List[Message]:
    out = []
    for m in messages:
        c = dict(m)
        c.pop("tapback", None)
        out.append(c)
    return out


def add_message(messages: List[Message], text: str = "New message", speaker: str = "SENDER") -> List[Message]:
    return list(messages) + [normalize_message({"speaker": speaker, "text": text}, len(messages))]


def remove_message(messages: List[Message], message_id: str) -> List[Message]:
    return [dict(m) for m in messages if m["id"] != message_id]


def move_message(messages: List[Message], src: int, dst: int) -> List[Message]:
    out = [dict(m) for m in messages]
    if not (0 <= src < len(out)) or not (0 <= dst < len(out)) or src == dst:
        return out
    item = out.pop(src)
    out.insert(dst, item)
    return out
