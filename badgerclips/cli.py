"""Thin CLI entry point — builds a SplitRequest and calls the engine."""

import argparse
import logging
import os
import sys
from pathlib import Path

from badgerclips.engine import split
from badgerclips.manifest import ErrorPolicy, load_manifest, parse_length
from badgerclips.models import ClipResult, SplitRequest


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stderr handler."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(handler)


def _positive_int(value: str) -> int:
    try:
        return parse_length(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="badgerclips",
        description="BadgerClips — utilities for dealing with video clips.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    sub = parser.add_subparsers(dest="command")

    sp = sub.add_parser("split", help="Split a single video into multiple clips of a specified length")
    sp.add_argument("input", nargs="?", type=Path, help="The input video to be split")
    sp.add_argument("--length", "-l", type=_positive_int, help="The desired length of each new clip (seconds)")
    sp.add_argument("--output", "-o", type=Path, help="The directory to save the split clips")
    sp.add_argument(
        "--reencode", "-r", action="store_true",
        help="Re-encode each clip instead of copying streams; helps with periods of missing video",
    )
    sp.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    sp.add_argument(
        "--strict", action="store_true",
        help="Treat a missing input, directory or probe failure as fatal",
    )

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8322, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging("DEBUG")
    elif args.quiet:
        setup_logging("WARNING")
    else:
        setup_logging()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from badgerclips.web import create_app
        app = create_app()
        print(f"BadgerClips web API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if args.manifest:
        if args.input or args.length or args.output or args.reencode:
            parser.error("--manifest cannot be combined with INPUT, --length, --output or --reencode")
        m = load_manifest(args.manifest)
        request, policy = m.request, m.policy
        if args.strict:
            policy = ErrorPolicy.strict()
    elif args.input and args.length and args.output:
        request = SplitRequest(
            input=args.input,
            output_dir=args.output,
            length=args.length,
            reencode=args.reencode,
        )
        policy = ErrorPolicy.strict() if args.strict else ErrorPolicy()
    else:
        parser.error("split needs INPUT, --length and --output, or --manifest")

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    def on_clip(clip: ClipResult) -> None:
        print(clip.output_path)

    result = split(request, policy=policy, on_progress=on_progress, on_clip=on_clip)

    if result.fatal:
        print(f"Error: {result.fatal.message}", file=sys.stderr)
        sys.exit(result.exit_code)

    print()
    print(f"Done! {len(result.clips)} clip(s) in {request.output_dir}")
    print(f"  Duration: {result.duration:.2f}s, clip length: {request.length}s")
    if result.issues:
        print(f"  Warnings: {len(result.issues)}")
