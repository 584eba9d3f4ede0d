"""
vmaf-align Command Line
=======================

Entry point for the watermark and process commands.

Commands:
    vmaf-align watermark FILE --id N     -> <name>.w.ivf
    vmaf-align process FILE              -> <name>.r.ivf

Exit Codes:
    0   success (including an empty result, reported as a warning)
    1   fatal error (decode, write, overflow, invalid configuration)
    130 cancelled (SIGINT / SIGTERM)
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

import yaml
from pydantic import ValidationError

from vmaf_align import __version__
from vmaf_align.config import Settings, load_config, setup_logging
from vmaf_align.errors import PipelineCancelled, VmafAlignError
from vmaf_align.pipeline import process_video, watermark_video


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} is negative")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vmaf-align",
        description="Watermark videos and realign captured copies for VMAF evaluation.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--log-level", help="Override logging.level")
    parser.add_argument("--workers", type=int, help="Recognition threads")
    parser.add_argument("--nominal-interval-ms", type=int, help="Expected frame spacing (ms)")
    parser.add_argument("--output-dir", help="Directory for output files")

    sub = parser.add_subparsers(dest="command", required=True)

    wm = sub.add_parser("watermark", help="Draw an id+timestamp watermark into every frame")
    wm.add_argument("file", help="Video file to watermark")
    wm.add_argument("--id", type=_non_negative, required=True, dest="watermark_id", help="Watermark id")

    proc = sub.add_parser("process", help="Recognize watermarks and realign frames")
    proc.add_argument("file", help="Captured video file")
    proc.add_argument("--expected-id", type=_non_negative, help="Only accept tags with this id")
    proc.add_argument(
        "--rename-with-id",
        action="store_true",
        help="Name the output <name>.<id>.r.ivf after the recognized id",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of loaded settings."""
    data = settings.model_dump()
    if args.log_level:
        data["logging"]["level"] = args.log_level
    if args.workers is not None:
        data["processing"]["workers"] = args.workers
    if args.nominal_interval_ms is not None:
        data["realign"]["nominal_interval_ms"] = args.nominal_interval_ms
    if args.output_dir:
        data["output"]["directory"] = args.output_dir
    if getattr(args, "expected_id", None) is not None:
        data["recognition"]["expected_id"] = args.expected_id
    return Settings.model_validate(data)


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle_stop(signum, frame):
        logger.info(f"Received signal {signum}, stopping after the current frame...")
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_stop)
    signal.signal(signal.SIGTERM, _handle_stop)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(load_config(args.config), args)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"vmaf-align: invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR
    setup_logging(settings)

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)

    try:
        if args.command == "watermark":
            report = watermark_video(args.file, args.watermark_id, settings, stop_event=stop_event)
        else:
            report = process_video(
                args.file,
                settings,
                stop_event=stop_event,
                rename_with_id=args.rename_with_id,
            )
    except PipelineCancelled as e:
        logger.warning(f"Cancelled: {e}")
        return EXIT_CANCELLED
    except VmafAlignError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_ERROR

    if report.empty:
        logger.warning(f"{args.file}: no frames written")
    else:
        logger.info(f"{args.file} -> {report.output_path} ({report.frames_out} frames)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
