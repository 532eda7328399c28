# -*- coding: utf-8 -*-
"""
Export schedule: synthesize every message in order and re-time the script so the next
bubble appears exactly when the current line has been spoken.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence

from . import config
from .errors import SynthesisFailure
from .schedule import round_half_up
from .schema import Message
from .tts_client import AudioSegment

logger = logging.getLogger("chatreel.export_schedule")

ProgressFn = Callable[[str], None]


@dataclass(frozen=True)
class ExportPlan:
    messages: List[Message]          # copies with delay_s replaced by the spoken length
    segments: List[AudioSegment]     # same order as messages
    duration_ms: int                 # sum of the measured audio lengths


def export_delay_s(duration_ms: float) -> float:
    """Spoken length rounded to hundredths of a second, never below MIN_EXPORT_DELAY_SEC."""
    return max(config.MIN_EXPORT_DELAY_SEC, round_half_up(duration_ms / 10) / 100)


def voice_for(message: Message, voices: Mapping[str, str], default: str = "alloy") -> str:
    return voices.get(message.get("speaker", "SENDER")) or default


async def build_export_plan(
    messages: Sequence[Message],
    voices: Mapping[str, str],
    synthesizer,
    progress: Optional[ProgressFn] = None,
    default_voice: str = "alloy",
) -> ExportPlan:
    """
    synthesizer: object with `async synthesize(text, voice_id) -> Speech`.
    Requests go out strictly one after another; the first failure aborts the plan.
    """
    segments: List[AudioSegment] = []
    n = len(messages)
    for i, m in enumerate(messages):
        voice = voice_for(m, voices, default_voice)
        if progress:
            progress(f"Generating speech ({i + 1}/{n})…")
        try:
            speech = await synthesizer.synthesize(m.get("text", ""), voice)
        except SynthesisFailure as e:
            if e.index is None:
                e.index = i
            raise
        except Exception as e:
            raise SynthesisFailure(f"speech synthesis failed for message {i + 1}: {e!r}", index=i) from e
        segments.append(AudioSegment(m.get("id", ""), speech.audio, int(speech.duration_ms)))
        logger.debug("[%03d] voice=%s %d ms", i + 1, voice, speech.duration_ms)

    retimed = [{**m, "delay_s": export_delay_s(seg.duration_ms)} for m, seg in zip(messages, segments)]
    return ExportPlan(retimed, segments, sum(s.duration_ms for s in segments))
