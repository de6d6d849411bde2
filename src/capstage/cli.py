"""Command-line entry points.

    capstage render <video> <manifest> <style> <output> [duration]
    capstage serve [--host HOST] [--port PORT]
"""

import argparse
import logging
import sys

from capstage.models.errors import CapstageError
from capstage.models.render import RenderProgress
from capstage.pipeline.orchestrator import RenderOrchestrator


def _print_progress(progress: RenderProgress) -> None:
    if progress.total_frames:
        chunk = ""
        if progress.total_chunks > 1:
            chunk = f" (chunk {progress.chunk}/{progress.total_chunks})"
        print(
            f"\rRendered {progress.rendered_frames}/{progress.total_frames} frames{chunk}",
            end="",
            file=sys.stderr,
            flush=True,
        )


def cmd_render(args: argparse.Namespace) -> int:
    orchestrator = RenderOrchestrator()
    try:
        result = orchestrator.run(
            video_path=args.video,
            manifest_path=args.manifest,
            style_preset=args.style,
            output_path=args.output,
            duration_seconds=args.duration,
            progress_callback=None if args.quiet else _print_progress,
        )
    except CapstageError as e:
        if not args.quiet:
            print(file=sys.stderr)
        print(f"Render error ({type(e).__name__}): {e.message}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(file=sys.stderr)
    print(f"Render done: {result.output_path} ({result.file_size_mb:.1f} MB)")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("capstage.api.app:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capstage",
        description="Stage captions and B-roll over a video and render the result.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render one job and exit")
    # Optional positionals so missing inputs are reported as InvalidArguments.
    render.add_argument("video", nargs="?", help="Source video file")
    render.add_argument("manifest", nargs="?", help="Captions / B-roll manifest (JSON)")
    render.add_argument("style", nargs="?", help="Style preset: bottom, top or karaoke")
    render.add_argument("output", nargs="?", help="Output video path")
    render.add_argument(
        "duration", nargs="?", type=float, default=None, help="Target duration in seconds"
    )
    render.add_argument("-q", "--quiet", action="store_true", help="No progress output")
    render.set_defaults(func=cmd_render)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
