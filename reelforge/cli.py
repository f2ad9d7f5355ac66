"""Thin CLI entry point: parses arguments and calls the editors/engine."""

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from reelforge import ffutil
from reelforge.editors.concat import concat_videos
from reelforge.editors.convert import convert_format, extract_audio
from reelforge.editors.crop import crop_video
from reelforge.editors.watermark import add_watermark
from reelforge.engine import auto_crop_batch, auto_cut_video
from reelforge.ffutil import FFmpegNotFoundError, MediaError
from reelforge.manifest import AutoCutConfig, Manifest, load_manifest
from reelforge.planner import PRESETS


def _position(value: str):
    """Accept a corner name or ``X,Y``."""
    if "," in value:
        x, y = value.split(",", 1)
        return (int(x), int(y))
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelforge",
        description="ReelForge: ffmpeg-driven watermarking, cropping, concat and auto-cut.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    wm = sub.add_parser("watermark", help="Overlay an image on a video")
    wm.add_argument("video", type=Path)
    wm.add_argument("image", type=Path)
    wm.add_argument("--position", type=_position, help="left-top, right-top, left-bottom, right-bottom or X,Y")
    wm.add_argument("--margin", type=int, help="Margin in pixels (default: 10)")
    wm.add_argument("--scale", type=float, help="Watermark scale factor (default: 1)")
    wm.add_argument("--opacity", type=float, help="Opacity 0-1 (default: 1)")
    wm.add_argument("--rotation", type=float, help="Rotation in degrees (default: 0)")
    wm.add_argument("--crf", type=int, help="Constant rate factor 0-51 (default: 23)")
    wm.add_argument("--preset", choices=PRESETS, help="Encoder preset (default: ultrafast)")

    crop = sub.add_parser("crop", help="Cut a time window out of a video")
    crop.add_argument("video", type=Path)
    crop.add_argument("start", type=float, help="Start in seconds")
    crop.add_argument("duration", type=float, help="Duration in seconds")

    audio = sub.add_parser("extract-audio", help="Extract the audio track")
    audio.add_argument("video", type=Path)
    audio.add_argument("--codec", default="copy", help="Audio codec (default: source codec)")
    audio.add_argument("--bitrate", default=None, help="Audio bitrate, e.g. 192k")

    conv = sub.add_parser("convert", help="Re-encode the video stream")
    conv.add_argument("video", type=Path)
    conv.add_argument("output", type=Path)
    conv.add_argument("--codec", default="libx264")
    conv.add_argument("--crf", type=int, default=23)
    conv.add_argument("--preset", choices=PRESETS, default="ultrafast")

    info = sub.add_parser("info", help="Print media metadata as JSON")
    info.add_argument("video", type=Path)

    concat = sub.add_parser("concat", help="Join videos end to end")
    concat.add_argument("inputs", nargs="+", type=Path)
    concat.add_argument("--output", "-o", type=Path, required=True)

    batch = sub.add_parser("auto-crop", help="Cut a random clip from every video in a directory")
    batch.add_argument("directory", type=Path)
    batch.add_argument("--min-sec", type=float, default=5)
    batch.add_argument("--max-sec", type=float, default=10)
    batch.add_argument("--extensions", default="mp4,mov")
    batch.add_argument("--seed", type=int, default=None)

    cut = sub.add_parser("auto-cut", help="Build a highlight reel from a directory of videos")
    cut.add_argument("directory", nargs="?", type=Path)
    cut.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    cut.add_argument("--output", "-o", type=Path)
    cut.add_argument("--min-sec", type=float, default=5)
    cut.add_argument("--max-sec", type=float, default=10)
    cut.add_argument("--extensions", default="mp4,mov")
    cut.add_argument("--seed", type=int, default=None)

    sub.add_parser("codecs", help="List codecs supported by ffmpeg")
    return parser


def _print_progress(pct: float) -> None:
    print(f"  [{pct:3.0f}%]", flush=True)


def _auto_cut_manifest(args, parser: argparse.ArgumentParser) -> Manifest:
    if args.manifest:
        return load_manifest(args.manifest)
    if args.directory and args.output:
        return Manifest(
            input_dir=args.directory,
            output=args.output,
            seed=args.seed,
            auto_cut=AutoCutConfig(
                min_sec=args.min_sec,
                max_sec=args.max_sec,
                extensions=args.extensions,
            ),
        )
    parser.error("auto-cut needs DIRECTORY and --output, or --manifest")


def run(args, parser: argparse.ArgumentParser) -> None:
    if args.command == "watermark":
        out = add_watermark(
            args.video,
            args.image,
            position=args.position,
            margin=args.margin,
            scale=args.scale,
            opacity=args.opacity,
            rotation=args.rotation,
            crf=args.crf,
            preset=args.preset,
            on_progress=_print_progress,
        )
        print(f"Done! Output: {out}")
    elif args.command == "crop":
        out = crop_video(args.video, args.start, args.duration, on_progress=_print_progress)
        print(f"Done! Output: {out}")
    elif args.command == "extract-audio":
        out = extract_audio(args.video, args.codec, args.bitrate, on_progress=_print_progress)
        print(f"Done! Output: {out}")
    elif args.command == "convert":
        out = convert_format(
            args.video, args.output, args.codec, args.crf, args.preset,
            on_progress=_print_progress,
        )
        print(f"Done! Output: {out}")
    elif args.command == "info":
        print(json.dumps(ffutil.get_metadata(args.video).to_dict(), indent=2))
    elif args.command == "concat":
        out = concat_videos(args.inputs, args.output, on_progress=_print_progress)
        print(f"Done! Output: {out}")
    elif args.command == "auto-crop":
        clips = auto_crop_batch(
            args.directory,
            min_sec=args.min_sec,
            max_sec=args.max_sec,
            extensions=args.extensions,
            rng=random.Random(args.seed),
        )
        for clip in clips:
            print(clip)
    elif args.command == "auto-cut":
        m = _auto_cut_manifest(args, parser)
        out = auto_cut_video(
            m.input_dir,
            m.output,
            config=m.auto_cut,
            rng=random.Random(m.seed),
            on_progress=_print_progress,
        )
        print(f"Done! Output: {out}")
    elif args.command == "codecs":
        for name, codec in sorted(ffutil.list_codecs().items()):
            flags = ("D" if codec.decode else ".") + ("E" if codec.encode else ".")
            print(f"{flags} {codec.type or '?':<10} {name:<24} {codec.description}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args, parser)
    except (MediaError, FFmpegNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
