# -*- coding: utf-8 -*-
"""
chat_maker.py – render-manifest.json -> speech-paced chat video (MP4) + optional SRT
Usage:
  ./.venv/bin/python chat_maker.py \
    --manifest projects/Demo/render-manifest.json \
    --out      projects/Demo/output/Demo.mp4 \
    --srt      projects/Demo/output/Demo.srt \
    --sender-voice adam --receiver-voice alloy

  # one preview frame at t=2.5s, no speech needed
  ./.venv/bin/python chat_maker.py --manifest ... --frame 2500 --png frame.png

  # voices available to the API key
  ./.venv/bin/python chat_maker.py --list-voices
"""

from __future__ import annotations
import argparse
import asyncio
import logging
from pathlib import Path

from chatreel import config
from chatreel.clock import DualModeClock
from chatreel.encoder import MoviePyEncoder
from chatreel.exporter import ExportJob, ExportState
from chatreel.manifest import load_manifest
from chatreel.raster import PillowCapture, rasterize
from chatreel.schedule import natural_duration_ms
from chatreel.srt_utils import schedule_to_items, write_srt
from chatreel.surface import PresentationSurface
from chatreel.tts_client import SpeechClient


def render_frame(args):
    manifest = load_manifest(args.manifest)
    clock = DualModeClock.for_export(natural_duration_ms(manifest["messages"]))
    clock.set_export_time(args.frame)
    img = rasterize(PresentationSurface(manifest, clock).frame(), args.font)
    out = Path(args.png)
    out.parent.mkdir(parents=True, exist_ok=True)
    img.save(out, "PNG")
    print(f"✅ PNG : {out}  (t={args.frame}ms)")


def render_video(args, client: SpeechClient):
    manifest = load_manifest(args.manifest)
    n = len(manifest["messages"])
    print(f"[chat] {n} messages, contact={manifest['meta'].get('contactName', '')!r}")

    def on_state(state: ExportState, note: str):
        if note:
            print(f"  … {note}")

    voices = client.list_voices() if not (args.sender_voice and args.receiver_voice) else []
    sender = args.sender_voice or (voices[0] if voices else "adam")
    receiver = args.receiver_voice or (voices[1] if len(voices) > 1 else sender)

    job = ExportJob(client, PillowCapture(font_path=args.font), MoviePyEncoder(),
                    timeout_s=args.timeout, on_state=on_state)
    result = asyncio.run(job.run(manifest, {"SENDER": sender, "RECEIVER": receiver}))
    if result is None:
        print(f"❌ Export failed: {job.error}")
        raise SystemExit(2)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(result.video)
    print(f"✅ MP4 : {out}  ({result.frame_count} frames @ {result.fps}fps, {result.duration_ms / 1000:.2f}s)")
    if args.srt:
        Path(args.srt).parent.mkdir(parents=True, exist_ok=True)
        write_srt(schedule_to_items(result.messages, result.duration_ms), args.srt)
        print(f"✅ SRT : {args.srt}")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--manifest", help="render-manifest.json")
    ap.add_argument("--out", default="output/fake-text.mp4")
    ap.add_argument("--srt", default=None, help="also write subtitles for the speech-paced schedule")
    ap.add_argument("--api-base", default=config.API_BASE_URL, help="speech API base URL (env CHATREEL_API_BASE)")
    ap.add_argument("--api-key", default=config.API_KEY, help="speech API key (env CHATREEL_API_KEY)")
    ap.add_argument("--sender-voice", default="")
    ap.add_argument("--receiver-voice", default="")
    ap.add_argument("--font", default=None, help="TTF/OTF used for all text")
    ap.add_argument("--timeout", type=float, default=None, help="give up on the whole export after N seconds")
    ap.add_argument("--frame", type=int, default=None, help="render a single frame at this time (ms)")
    ap.add_argument("--png", default="output/frame.png")
    ap.add_argument("--list-voices", action="store_true")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    client = SpeechClient(base_url=args.api_base, api_key=args.api_key)
    if args.list_voices:
        for v in client.list_voices():
            print(v)
        return
    if not args.manifest:
        ap.error("--manifest is required")
    if args.frame is not None:
        render_frame(args)
    else:
        render_video(args, client)


if __name__ == "__main__":
    main()
