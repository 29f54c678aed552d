#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure local package is importable when running from source.
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from audiosplit import audio
from audiosplit.errors import AudioSplitError
from audiosplit.limits import DEFAULT_LIMITS
from audiosplit.models import SegmentResult
from audiosplit.pipeline import chunk_audio, ensure_input_exists, preview_plan, split_chunk, transcribe_file


def emit(event_type: str, payload: object) -> None:
    print(json.dumps({"type": event_type, "payload": payload}, ensure_ascii=False), flush=True)


def emit_segment(result: SegmentResult) -> None:
    emit("segment", result.to_dict())


def command_inspect(args: argparse.Namespace) -> int:
    source = Path(args.input)
    ensure_input_exists(source)
    print(audio.inspect_media(source))
    return 0


def command_chunk(args: argparse.Namespace) -> int:
    results = chunk_audio(Path(args.input), args.max_size_mb, on_segment=emit_segment)
    emit("result", {"segments": len(results)})
    return 0


def command_split(args: argparse.Namespace) -> int:
    results = split_chunk(Path(args.input), args.parts, on_segment=emit_segment)
    emit("result", {"segments": len(results)})
    return 0


def command_transcribe(args: argparse.Namespace) -> int:
    output_path = transcribe_file(Path(args.input))
    emit("result", {"filePath": str(output_path)})
    return 0


def command_plan(args: argparse.Namespace) -> int:
    plan = preview_plan(Path(args.input), max_size_mb=args.max_size_mb, parts=args.parts)
    emit("result", [window.to_dict() for window in plan])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and chunk audio files with ffmpeg")
    parser.add_argument("--verbose", "-v", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect_parser = sub.add_parser("inspect", help="Display ffmpeg metadata for an input file")
    inspect_parser.add_argument("input")
    inspect_parser.set_defaults(func=command_inspect)

    chunk = sub.add_parser("chunk", help="Chunk an audio file into segments under the size limit")
    chunk.add_argument("input")
    chunk.add_argument("--max-size-mb", type=float, default=DEFAULT_LIMITS.max_chunk_mb)
    chunk.set_defaults(func=command_chunk)

    split = sub.add_parser("split", help="Split an already compliant chunk into N sequential parts")
    split.add_argument("input")
    split.add_argument("--parts", type=int, required=True)
    split.set_defaults(func=command_split)

    transcribe = sub.add_parser("transcribe", help="Transcribe a chunked audio file using OpenAI")
    transcribe.add_argument("input")
    transcribe.set_defaults(func=command_transcribe)

    plan = sub.add_parser("plan", help="Print the chunk or split plan without cutting anything")
    plan.add_argument("input")
    plan.add_argument("--max-size-mb", type=float, default=DEFAULT_LIMITS.max_chunk_mb)
    plan.add_argument("--parts", type=int, default=None)
    plan.set_defaults(func=command_plan)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return int(args.func(args))
    except AudioSplitError as exc:
        emit("error", {"command": args.command, "message": str(exc)})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
