# -*- coding: utf-8 -*-
"""
Export pipeline: manifest -> speech -> speech-paced schedule -> frames -> MP4.

Every attempt works on its own manifest snapshot and its own export clock, so a running
interactive preview is never touched. Any failure ends the attempt with no output.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from .capture_loop import capture_frames
from .clock import DualModeClock
from .errors import ChatreelError, EncodeFailure, ExportError, ScheduleInputError
from .export_schedule import ExportPlan, build_export_plan
from .manifest import snapshot, with_messages
from .schema import Message, RenderManifest
from .surface import PresentationSurface

logger = logging.getLogger("chatreel.exporter")


@dataclass(frozen=True)
class ExportResult:
    video: bytes
    frame_count: int
    duration_ms: int
    fps: int
    width: int
    height: int
    plan: ExportPlan

    @property
    def messages(self) -> List[Message]:
        return self.plan.messages


def _noop(_note: str):
    pass


async def export_video(
    manifest: RenderManifest,
    voices: Mapping[str, str],
    synthesizer,
    capture,
    encoder,
    progress: Callable[[str], None] = _noop,
) -> ExportResult:
    snap = snapshot(manifest)
    if not snap["messages"]:
        raise ScheduleInputError("nothing to export: the script has no messages")
    cv = snap["canvas"]
    fps, width, height = int(cv["fps"]), int(cv["width"]), int(cv["height"])

    progress("Preparing renderer...")
    plan = await build_export_plan(snap["messages"], voices, synthesizer, progress=progress)

    # fresh export-driven clock over the speech-paced script
    export_manifest = with_messages(snap, plan.messages)
    clock = DualModeClock.for_export(max(1, plan.duration_ms))
    surface = PresentationSurface(export_manifest, clock)

    progress("Capturing frames…")
    frames = await capture_frames(clock, surface, capture, fps, plan.duration_ms)

    progress(f"Encoding MP4 ({len(frames)} frames @ {fps}fps)…")
    try:
        video = await encoder.encode(frames, plan.segments, fps, width, height)
    except EncodeFailure:
        raise
    except Exception as e:
        raise EncodeFailure(f"encoding failed: {e!r}") from e
    logger.info("export done: %d frames, %d ms, %d bytes", len(frames), plan.duration_ms, len(video))
    return ExportResult(video, len(frames), plan.duration_ms, fps, width, height, plan)


class ExportState(enum.Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ExportJob:
    """
    One export button: runs attempts one at a time and reports a single terminal state.
    A retry is simply another run() with a fresh snapshot.
    """

    def __init__(self, synthesizer, capture, encoder,
                 timeout_s: Optional[float] = None,
                 on_state: Optional[Callable[[ExportState, str], None]] = None):
        self.synthesizer = synthesizer
        self.capture = capture
        self.encoder = encoder
        self.timeout_s = timeout_s
        self.on_state = on_state
        self.state = ExportState.IDLE
        self.note = ""
        self.error: Optional[BaseException] = None
        self.result: Optional[ExportResult] = None

    def _set(self, state: ExportState, note: str):
        self.state, self.note = state, note
        if self.on_state:
            self.on_state(state, note)

    def _progress(self, note: str):
        self._set(ExportState.RUNNING, note)

    async def run(self, manifest: RenderManifest, voices: Mapping[str, str]) -> Optional[ExportResult]:
        if self.state is ExportState.RUNNING:
            logger.debug("export already running, ignored")
            return None
        self.error = None
        self.result = None
        self._set(ExportState.RUNNING, "")
        coro = export_video(manifest, voices, self.synthesizer, self.capture, self.encoder, self._progress)
        try:
            if self.timeout_s is not None:
                result = await asyncio.wait_for(coro, self.timeout_s)
            else:
                result = await coro
        except asyncio.CancelledError:
            self._set(ExportState.CANCELLED, "")
            raise
        except asyncio.TimeoutError:
            self.error = ExportError(f"export timed out after {self.timeout_s}s")
            logger.error("export failed: %s", self.error)
            self._set(ExportState.FAILED, "Export failed.")
            return None
        except ChatreelError as e:
            self.error = e
            logger.error("export failed at %s: %s", getattr(e, "stage", "input"), e)
            self._set(ExportState.FAILED, "Export failed.")
            return None
        except Exception as e:
            self.error = e
            logger.exception("export failed unexpectedly")
            self._set(ExportState.FAILED, "Export failed.")
            return None
        self.result = result
        self._set(ExportState.DONE, "")
        return result
