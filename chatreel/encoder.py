# -*- coding: utf-8 -*-
"""
Mux/encode: JPEG frame sequence + per-message WAV segments -> one MP4 (MoviePy 2.x).
- audio segments are concatenated end to end
- frames are equally spaced at 1/fps
"""
from __future__ import annotations

import asyncio
import io
import logging
import tempfile
from pathlib import Path
from typing import List, Sequence

import numpy as np
from PIL import Image
from moviepy import AudioFileClip, ImageSequenceClip, concatenate_audioclips

from .capture_loop import CapturedFrame
from .errors import EncodeFailure
from .tts_client import AudioSegment

logger = logging.getLogger("chatreel.encoder")


def decode_frames(frames: Sequence[CapturedFrame], width: int, height: int) -> List[np.ndarray]:
    ordered = sorted(frames, key=lambda f: f.index)
    out = []
    for f in ordered:
        im = Image.open(io.BytesIO(f.image)).convert("RGB")
        if im.size != (width, height):
            im = im.resize((width, height), Image.LANCZOS)
        out.append(np.asarray(im))
    return out


class MoviePyEncoder:
    def __init__(self, codec: str = "libx264", audio_codec: str = "aac", preset: str = "medium"):
        self.codec = codec
        self.audio_codec = audio_codec
        self.preset = preset

    def _mux(self, tmp_dir: Path, frames, segments, fps: int, width: int, height: int) -> bytes:
        clips = []
        try:
            video = ImageSequenceClip(decode_frames(frames, width, height), fps=fps)
            clips.append(video)
            if segments:
                for i, seg in enumerate(segments):
                    p = tmp_dir / f"seg_{i:03d}.wav"
                    p.write_bytes(seg.audio)
                    clips.append(AudioFileClip(str(p)))
                voice = concatenate_audioclips(clips[1:])
                clips.append(voice)
                video = video.with_audio(voice)
            out = tmp_dir / "out.mp4"
            video.write_videofile(
                str(out), fps=fps, codec=self.codec, audio_codec=self.audio_codec,
                preset=self.preset, ffmpeg_params=["-pix_fmt", "yuv420p", "-movflags", "+faststart"],
                logger=None,
            )
            return out.read_bytes()
        finally:
            for c in clips:
                c.close()

    def encode_sync(self, frames: Sequence[CapturedFrame], segments: Sequence[AudioSegment],
                    fps: int, width: int, height: int) -> bytes:
        if not frames:
            raise EncodeFailure("no frames to encode")
        try:
            with tempfile.TemporaryDirectory(prefix="chatreel_") as tmp:
                data = self._mux(Path(tmp), frames, segments, fps, width, height)
        except Exception as e:
            raise EncodeFailure(f"encoding failed: {e!r}") from e
        if not data:
            raise EncodeFailure("encoder produced an empty file")
        logger.debug("encoded %d frames + %d audio segments -> %d bytes", len(frames), len(segments), len(data))
        return data

    async def encode(self, frames, segments, fps: int, width: int, height: int) -> bytes:
        return await asyncio.to_thread(self.encode_sync, frames, segments, fps, width, height)
