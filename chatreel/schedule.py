# -*- coding: utf-8 -*-
"""
Reveal schedule: message list -> cumulative reveal times, and time -> number of visible bubbles.
Pure functions, no I/O.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence

from . import config


@dataclass(frozen=True)
class ScheduleEntry:
    message_id: str
    at: int            # ms from timeline start


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def delay_ms(message: Mapping[str, Any]) -> int:
    """Delay shown *after* this message, in whole ms (default 3000, never negative)."""
    d = message.get("delay_s")
    if isinstance(d, bool) or not isinstance(d, (int, float)) or not math.isfinite(d):
        d = config.DEFAULT_DELAY_SEC
    return max(0, round_half_up(d * 1000))


def build_schedule(messages: Sequence[Mapping[str, Any]]) -> List[ScheduleEntry]:
    acc = 0
    out: List[ScheduleEntry] = []
    for m in messages:
        out.append(ScheduleEntry(str(m.get("id", "")), acc))
        acc += delay_ms(m)
    return out


def visible_count(schedule: Sequence[ScheduleEntry], time_ms: float,
                  tolerance_ms: float = config.REVEAL_TOLERANCE_MS) -> int:
    # entries are sorted by `at`, so stop at the first one still in the future
    i = 0
    while i < len(schedule) and schedule[i].at <= time_ms + tolerance_ms:
        i += 1
    return i


def total_delay_ms(messages: Sequence[Mapping[str, Any]]) -> int:
    return sum(delay_ms(m) for m in messages)


def natural_duration_ms(messages: Sequence[Mapping[str, Any]]) -> int:
    """Editorial running time used by the interactive preview: delays plus a short tail."""
    return max(config.NATURAL_MIN_MS, total_delay_ms(messages) + config.NATURAL_TAIL_MS)
