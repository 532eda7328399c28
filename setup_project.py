# -*- coding: utf-8 -*-
"""
Setup & project scaffolding for the chat video maker

Usage:
  # install / update dependencies into .venv
  python3 setup_project.py

  # rebuild the virtualenv from scratch
  python3 setup_project.py --reinstall

  # create a new video project (projects/MyTitle)
  python3 setup_project.py --init-project "MyTitle"
"""
import os
import sys
import argparse
import subprocess
import shutil
from pathlib import Path

from chatreel.manifest import build_manifest, save_manifest

BASE = Path(__file__).resolve().parent

def run(cmd, **kw):
    print("$", " ".join(str(c) for c in cmd))
    subprocess.check_call(cmd, **kw)

def ensure_ffmpeg_hint():
    # moviepy needs an ffmpeg binary; only print a hint when it is missing
    if shutil.which("ffmpeg") is None:
        print("\n[Hint] ffmpeg not found. On Ubuntu install it with:")
        print("  sudo apt-get update && sudo apt-get install -y ffmpeg\n")

def create_or_recreate_venv(reinstall: bool):
    venv_dir = BASE / ".venv"
    if reinstall and venv_dir.exists():
        print("[Reinstall] remove .venv ...")
        shutil.rmtree(venv_dir)

    if not venv_dir.exists():
        run([sys.executable, "-m", "venv", ".venv"], cwd=str(BASE))

    pip = venv_dir / ("Scripts/pip.exe" if os.name == "nt" else "bin/pip")
    run([str(pip), "install", "-U", "pip", "wheel"], cwd=str(BASE))
    run([str(pip), "install", "-e", ".[test]"], cwd=str(BASE))
    ensure_ffmpeg_hint()
    return venv_dir

def write_file(path: Path, content: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

# sample script for a new project
TEMPLATE_MESSAGES = [
    {"speaker": "SENDER", "text": "Hey, you free?"},
    {"speaker": "RECEIVER", "text": "Yep! On my way."},
    {"speaker": "SENDER", "text": "Great, see you soon.", "read_receipt": "Read 7:43 PM"},
]

def init_project(name: str, dst: Path):
    proj_dir = (dst / name).resolve()
    for p in (proj_dir / "assets", proj_dir / "output"):
        p.mkdir(parents=True, exist_ok=True)

    save_manifest(build_manifest(TEMPLATE_MESSAGES), proj_dir / "render-manifest.json")

    run_sh = f"""#!/bin/bash
# Auto-generated runner for project '{name}'
set -euo pipefail
PRJ_DIR="$(cd "$(dirname "$0")" && pwd)"
ROOT_DIR="$(cd "$PRJ_DIR/../.." && pwd)"
PROJECT_NAME="$(basename "$PRJ_DIR")"

PY="$ROOT_DIR/.venv/bin/python"
if [ ! -x "$PY" ]; then
  if command -v python3 >/dev/null 2>&1; then PY="python3"; else PY="python"; fi
fi

OUT_MP4="${{OUT_MP4:-$PRJ_DIR/output/${{PROJECT_NAME}}.mp4}}"
OUT_SRT="${{OUT_SRT:-$PRJ_DIR/output/${{PROJECT_NAME}}.srt}}"

exec "$PY" "$ROOT_DIR/chat_maker.py" \\
  --manifest "$PRJ_DIR/render-manifest.json" \\
  --out "$OUT_MP4" \\
  --srt "$OUT_SRT" "$@"
"""
    run_bat = f"""@echo off
REM Auto-generated runner for project '{name}'
setlocal EnableDelayedExpansion

set PRJ_DIR=%~dp0
set PRJ_DIR=%PRJ_DIR:~0,-1%
for %%I in ("%PRJ_DIR%") do set PROJECT_NAME=%%~nI
for %%I in ("%PRJ_DIR%\\..\\..") do set ROOT_DIR=%%~fI

set PY_WIN=%ROOT_DIR%\\.venv\\Scripts\\python.exe
if exist "%PY_WIN%" (
  set PY_CMD="%PY_WIN%"
) else (
  set PY_CMD=python
)

if "%OUT_MP4%"=="" set OUT_MP4=%PRJ_DIR%\\output\\%PROJECT_NAME%.mp4
if "%OUT_SRT%"=="" set OUT_SRT=%PRJ_DIR%\\output\\%PROJECT_NAME%.srt

%PY_CMD% "%ROOT_DIR%\\chat_maker.py" ^
  --manifest "%PRJ_DIR%\\render-manifest.json" ^
  --out "%OUT_MP4%" ^
  --srt "%OUT_SRT%" %*
"""

    sh_path = proj_dir / "run_project.sh"
    write_file(sh_path, run_sh)
    write_file(proj_dir / "run_project.bat", run_bat)
    os.chmod(sh_path, os.stat(sh_path).st_mode | 0o111)

    write_file(proj_dir / "README.md", f"""# Project: {name}

Edit `render-manifest.json` (messages, contact, settings, background), then run:
- Linux/WSL: `./run_project.sh --sender-voice adam --receiver-voice alloy`
- Windows: `run_project.bat --sender-voice adam --receiver-voice alloy`
""")

    print(f"[OK] created project skeleton: {proj_dir}")
    print("  - render-manifest.json, run_project.sh / run_project.bat")
    return proj_dir

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--reinstall", action="store_true", help="rebuild .venv and reinstall dependencies")
    ap.add_argument("--init-project", help="name of a new video project (created under projects/)")
    ap.add_argument("--dst", default="projects", help="where new projects are created")
    ap.add_argument("--skip-venv", action="store_true", help="only scaffold, do not touch .venv")
    args = ap.parse_args()

    if not args.skip_venv:
        create_or_recreate_venv(reinstall=args.reinstall)

    if args.init_project:
        dst = (BASE / args.dst)
        dst.mkdir(parents=True, exist_ok=True)
        init_project(args.init_project, dst)
    else:
        print("\n[Setup] dependencies installed.")
        print("Set CHATREEL_API_KEY before exporting. To start a new video project:")
        print("  python3 setup_project.py --init-project MyTitle\n")

if __name__ == "__main__":
    main()
