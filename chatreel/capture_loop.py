# -*- coding: utf-8 -*-
"""
Frame capture loop: step the export clock at a fixed cadence and capture one image per step.

Frame i shows the surface at min(duration, round(i * 1000 / fps)); the loop awaits each
capture before moving the clock, so no step is skipped or reordered.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import CaptureFailure
from .schedule import round_half_up

logger = logging.getLogger("chatreel.capture")


@dataclass(frozen=True)
class CapturedFrame:
    index: int
    time_ms: int
    image: bytes


def frame_count(fps: int, duration_ms: float) -> int:
    """floor(duration / (1000/fps)) + 1, i.e. a last frame lands on duration_ms itself."""
    if fps <= 0:
        raise ValueError("fps must be positive")
    return math.floor(max(0.0, duration_ms) * fps / 1000 + 1e-9) + 1


def frame_times(fps: int, duration_ms: float) -> List[int]:
    step = 1000.0 / fps
    return [min(int(duration_ms), round_half_up(i * step)) for i in range(frame_count(fps, duration_ms))]


async def capture_frames(
    clock,
    surface,
    capture,
    fps: int,
    duration_ms: float,
    on_frame: Optional[Callable[[int, int], None]] = None,
) -> List[CapturedFrame]:
    """
    clock:   export-driven DualModeClock (the only writer of its time)
    surface: PresentationSurface bound to that clock
    capture: object with `async capture(frame) -> bytes`
    """
    times = frame_times(fps, duration_ms)
    frames: List[CapturedFrame] = []
    for i, t in enumerate(times):
        clock.set_export_time(t)
        # let one render pass complete before capturing
        await asyncio.sleep(0)
        view = surface.frame()
        try:
            image = await capture.capture(view)
        except CaptureFailure as e:
            if e.index is None:
                e.index = i
            raise
        except Exception as e:
            raise CaptureFailure(f"frame {i} (t={t}ms) could not be captured: {e!r}", index=i) from e
        if not image:
            raise CaptureFailure(f"frame {i} (t={t}ms) captured no data", index=i)
        frames.append(CapturedFrame(i, t, image))
        if on_frame:
            on_frame(i, len(times))
    logger.debug("captured %d frames @ %d fps over %d ms", len(frames), fps, duration_ms)
    return frames
