# -*- coding: utf-8 -*-
from typing import List, Sequence, Tuple

from .schedule import build_schedule
from .schema import Message

def format_ts(sec: float) -> str:
    ms = int(round(sec * 1000))
    s, ms = divmod(ms, 1000)
    m, s = divmod(s, 60)
    h, m = divmod(m, 60)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"

def schedule_to_items(messages: Sequence[Message], duration_ms: int) -> List[Tuple[int, float, float, str]]:
    """One cue per message, shown from its reveal until the next reveal (or the end)."""
    sched = build_schedule(messages)
    items = []
    for i, (entry, msg) in enumerate(zip(sched, messages)):
        end = sched[i + 1].at if i + 1 < len(sched) else max(entry.at, duration_ms)
        items.append((i + 1, entry.at / 1000.0, end / 1000.0, msg.get("text", "")))
    return items

def write_srt(items: List[Tuple[int, float, float, str]], out_path: str):
    """items: list of (index, start_sec, end_sec, text)"""
    with open(out_path, 'w', encoding='utf-8') as f:
        for idx, start, end, text in items:
            f.write(f"{idx}\n")
            f.write(f"{format_ts(start)} --> {format_ts(end)}\n")
            f.write(text.strip() + "\n\n")
