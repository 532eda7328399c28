# -*- coding: utf-8 -*-
"""
Speech API HTTP client
- user-voice endpoint first, generic /audio/speech as fallback
- WAV output & its real length in ms
- retry/timeout on connection errors and 429/5xx
- voice listing with a built-in fallback list
"""

from __future__ import annotations
import asyncio
import contextlib
import io
import logging
import time
import wave
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

import requests

from . import config
from .errors import SynthesisFailure

logger = logging.getLogger("chatreel.tts")


@dataclass(frozen=True)
class Speech:
    audio: bytes
    duration_ms: int


@dataclass(frozen=True)
class AudioSegment:
    message_id: str
    audio: bytes
    duration_ms: int


def wav_duration_ms(audio: bytes) -> int:
    try:
        with contextlib.closing(wave.open(io.BytesIO(audio), "rb")) as wf:
            frames = wf.getnframes()
            rate = wf.getframerate()
    except (wave.Error, EOFError) as e:
        raise SynthesisFailure(f"speech response is not a readable WAV: {e}") from e
    if not rate:
        raise SynthesisFailure("speech response has a zero sample rate")
    return int(round(frames * 1000.0 / rate))


class SpeechClient:
    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        api_key: str = config.API_KEY,
        model: str = config.TTS_MODEL,
        retries: int = config.TTS_RETRIES,
        backoff: float = config.TTS_BACKOFF,
        timeout=config.TTS_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.retries = retries
        self.backoff = backoff
        self.timeout = timeout
        self.sess = session or requests.Session()

    def _headers(self) -> dict:
        h = {"Content-Type": "application/json"}
        if self.api_key:
            h["Authorization"] = f"Bearer {self.api_key}"
        return h

    # ---- low-level ----
    def _post(self, url: str, payload: dict) -> requests.Response:
        """POST with retries on transport errors and retryable statuses. Returns the last response."""
        last_err = None
        for attempt in range(self.retries + 1):
            try:
                r = self.sess.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
                if r.status_code not in config.TTS_RETRY_STATUSES or attempt == self.retries:
                    return r
                logger.info("speech API %s answered %d, retrying", url, r.status_code)
            except requests.exceptions.RequestException as e:
                last_err = e
                logger.info("speech API %s unreachable (%r)", url, e)
            if attempt < self.retries:
                time.sleep(self.backoff * (attempt + 1))
        raise SynthesisFailure(f"speech API unreachable at {self.base_url}: {last_err!r}")

    def _voice_url(self, voice_id: str) -> str:
        return f"{self.base_url}/users/me/voices/{quote(voice_id, safe='')}/speech"

    # ---- high-level ----
    def synthesize_sync(self, text: str, voice_id: str) -> Speech:
        r = self._post(self._voice_url(voice_id), {"input": text, "format": config.TTS_FORMAT})
        if not r.ok:
            logger.debug("user voice endpoint answered %d, trying generic endpoint", r.status_code)
            r = self._post(f"{self.base_url}/audio/speech", {
                "model": self.model, "voice": voice_id, "input": text, "format": config.TTS_FORMAT,
            })
        if not r.ok:
            raise SynthesisFailure(f"TTS failed ({r.status_code})", status=r.status_code)
        audio = r.content
        return Speech(audio, wav_duration_ms(audio))

    async def synthesize(self, text: str, voice_id: str) -> Speech:
        return await asyncio.to_thread(self.synthesize_sync, text, voice_id)

    def list_voices(self) -> List[str]:
        """Voices from the user's library, else the fallback list. 'adam' is always offered first."""
        names: List[str] = []
        try:
            r = self.sess.get(f"{self.base_url}/users/me/voices", headers=self._headers(), timeout=self.timeout)
            if r.ok:
                data = r.json()
                items = data.get("data") if isinstance(data.get("data"), list) else data.get("voices")
                if isinstance(items, list):
                    names = [str(v.get("id") or v.get("name")) for v in items
                             if isinstance(v, dict) and (v.get("id") or v.get("name"))]
        except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
            logger.warning("voice listing failed (%r), using fallback voices", e)
        voices = (names or list(config.FALLBACK_VOICES))[: config.MAX_VOICES]
        if "adam" not in voices:
            voices = ["adam"] + voices
        return voices
