# -*- coding: utf-8 -*-
"""
Dual-mode timeline clock.
- INTERACTIVE: time = now - anchor while playing; pause/resume/seek never jump
- EXPORT: time is written only through set_export_time() by the capture loop
One time value plus a mode tag; readers never branch on the mode.
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("chatreel.clock")


def wall_ms() -> float:
    return time.monotonic() * 1000.0


class ClockMode(enum.Enum):
    INTERACTIVE = "INTERACTIVE"
    EXPORT = "EXPORT"


@dataclass(frozen=True)
class TimelineState:
    mode: ClockMode
    time_ms: float
    playing: bool
    duration_ms: float


class ClockModeError(RuntimeError):
    pass


class DualModeClock:
    def __init__(
        self,
        duration_ms: float,
        mode: ClockMode = ClockMode.INTERACTIVE,
        now: Callable[[], float] = wall_ms,
        autoplay: bool = True,
        loop_at_ms: Optional[float] = None,
    ):
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        self.mode = mode
        self.duration_ms = float(duration_ms)
        self.loop_at_ms = loop_at_ms
        self._now = now
        self._time = 0.0
        self._anchor = now()
        self._playing = False
        if autoplay and mode is ClockMode.INTERACTIVE:
            self.play()

    @classmethod
    def for_export(cls, duration_ms: float) -> "DualModeClock":
        """A fresh export-driven clock; never switched back to interactive."""
        return cls(duration_ms, mode=ClockMode.EXPORT, autoplay=False)

    # ---- read ----
    @property
    def time_ms(self) -> float:
        return self._time

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def state(self) -> TimelineState:
        return TimelineState(self.mode, self._time, self._playing, self.duration_ms)

    def progress(self) -> float:
        return max(0.0, min(1.0, self._time / self.duration_ms))

    # ---- interactive transport ----
    def _require_interactive(self, op: str):
        if self.mode is not ClockMode.INTERACTIVE:
            raise ClockModeError(f"{op}() is not available on an export-driven clock")

    def play(self):
        self._require_interactive("play")
        if not self._playing:
            self._anchor = self._now() - self._time
            self._playing = True

    def pause(self):
        self._require_interactive("pause")
        if self._playing:
            self.tick()
            self._playing = False

    def toggle(self) -> bool:
        if self._playing:
            self.pause()
        else:
            self.play()
        return self._playing

    def seek(self, time_ms: float):
        self._require_interactive("seek")
        self._time = max(0.0, min(self.duration_ms, float(time_ms)))
        self._anchor = self._now() - self._time

    def seek_ratio(self, ratio: float):
        self.seek(max(0.0, min(1.0, ratio)) * self.duration_ms)

    def tick(self) -> float:
        """Advance from the wall clock. Called once per scheduling tick while playing."""
        if self.mode is not ClockMode.INTERACTIVE or not self._playing:
            return self._time
        now = self._now()
        t = now - self._anchor
        if self.loop_at_ms is not None and t >= self.loop_at_ms:
            # ambient demo loop: restart silently from 0
            logger.debug("loop reset at %.0f ms", t)
            self._anchor = now
            t = 0.0
        self._time = t
        return t

    # ---- export ----
    def set_export_time(self, time_ms: float):
        if self.mode is not ClockMode.EXPORT:
            raise ClockModeError("set_export_time() requires an export-driven clock")
        self._time = max(0.0, float(time_ms))
