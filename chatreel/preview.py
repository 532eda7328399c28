# -*- coding: utf-8 -*-
"""
Interactive preview session: a free-running clock, the presentation surface and a
cancellable ticker task that stands in for the browser's animation frames.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from . import config
from .clock import DualModeClock, wall_ms
from .manifest import snapshot
from .schedule import natural_duration_ms
from .schema import RenderManifest
from .surface import PresentationSurface, SurfaceFrame

logger = logging.getLogger("chatreel.preview")

FrameFn = Callable[[SurfaceFrame], None]


def fmt_time(ms: float) -> str:
    s = max(0, int(ms // 1000))
    return f"{s // 60}:{s % 60:02d}"


class InteractivePreview:
    def __init__(self, manifest: RenderManifest, now: Callable[[], float] = wall_ms,
                 autoplay: bool = True, hold_ms: float = config.LOOP_HOLD_MS):
        self.hold_ms = hold_ms
        self.manifest = snapshot(manifest)
        duration = natural_duration_ms(self.manifest["messages"])
        self.clock = DualModeClock(duration, now=now, autoplay=autoplay, loop_at_ms=duration + hold_ms)
        self.surface = PresentationSurface(self.manifest, self.clock)
        self._task: Optional[asyncio.Task] = None
        self._on_frame: Optional[FrameFn] = None

    # ---- manifest ----
    def update_manifest(self, manifest: RenderManifest):
        """Swap in an edited manifest; the visible count follows the new schedule at the current time."""
        self.manifest = snapshot(manifest)
        duration = natural_duration_ms(self.manifest["messages"])
        self.clock.duration_ms = float(duration)
        self.clock.loop_at_ms = duration + self.hold_ms
        self.surface = PresentationSurface(self.manifest, self.clock)
        if self.clock.time_ms > duration:
            self.clock.seek(duration)

    # ---- reads ----
    def frame(self) -> SurfaceFrame:
        return self.surface.frame()

    @property
    def duration_ms(self) -> float:
        return self.clock.duration_ms

    def progress(self) -> float:
        return self.clock.progress()

    def time_label(self) -> str:
        return fmt_time(self.progress() * self.duration_ms)

    def duration_label(self) -> str:
        return fmt_time(self.duration_ms)

    # ---- transport ----
    def toggle_play(self) -> bool:
        """Must be called from a running event loop when starting playback."""
        if self.clock.playing:
            self.clock.pause()
            self._cancel_ticker()
            return False
        # raises RuntimeError before the clock moves
        asyncio.get_running_loop()
        self.clock.play()
        self._ensure_ticker()
        return True

    def seek_ratio(self, ratio: float):
        self.clock.seek_ratio(ratio)
        self._emit()

    def seek_step(self, delta_ratio: float = 0.02):
        self.seek_ratio(self.progress() + delta_ratio)

    # ---- ticker ----
    def _emit(self):
        if self._on_frame:
            self._on_frame(self.frame())

    async def _run(self, interval: float):
        try:
            while self.clock.playing:
                self.clock.tick()
                self._emit()
                await asyncio.sleep(interval)
        finally:
            logger.debug("preview ticker stopped at %.0f ms", self.clock.time_ms)

    def _ensure_ticker(self, interval: float = config.TICK_INTERVAL_SEC):
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run(interval))

    def _cancel_ticker(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def start(self, on_frame: Optional[FrameFn] = None, interval: float = config.TICK_INTERVAL_SEC) -> Optional[asyncio.Task]:
        """Start ticking on the running event loop. Returns the ticker task (None when paused)."""
        self._on_frame = on_frame
        self._emit()
        if self.clock.playing:
            self._ensure_ticker(interval)
        return self._task

    def close(self):
        self._cancel_ticker()
        if self.clock.playing:
            self.clock.pause()
        self._on_frame = None

    @property
    def ticking(self) -> bool:
        return self._task is not None and not self._task.done()
