"""
Command line interface.

Usage:
    ddsm convert <raw-file> <rows> <cols> <digitizer> [--output PATH]
    ddsm overlay <overlay-file> [--rows R --cols C] [--output-dir DIR]
    ddsm check-calibration [--digitizer X]

Exit status is 0 on success, otherwise the status of the error kind
(see ddsm.errors).
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from ddsm import __version__, config
from ddsm.calibration import Digitizer, check_calibration
from ddsm.convert import convert_raw_to_pnm
from ddsm.errors import CalibrationRangeError, DDSMError, UsageError
from ddsm.masks import mask_area, mask_to_bbox, save_mask_png
from ddsm.overlay import load_overlay
from ddsm.validate import validate_overlay

logger = logging.getLogger(__name__)

DIGITIZER_HELP = (
    "Digitizer the film was scanned with: "
    + ", ".join(f"{d.value} ({d.legacy_name})" for d in Digitizer)
)


def cmd_convert(args) -> int:
    output = convert_raw_to_pnm(
        args.raw_file,
        rows=args.rows,
        cols=args.cols,
        digitizer=args.digitizer,
        output_path=args.output,
    )
    print(output)
    return 0


def cmd_overlay(args) -> int:
    if (args.rows is None) != (args.cols is None):
        raise UsageError("--rows and --cols must be given together")
    if args.output_dir and args.rows is None:
        raise UsageError("--output-dir needs --rows and --cols")

    overlay_path = Path(args.overlay_file)
    abnormalities = load_overlay(overlay_path)

    # Reported before masks are built, which stop at the first bad outline
    report = validate_overlay(abnormalities, args.rows, args.cols)
    for warning in report.errors + report.warnings:
        logger.warning(
            f"Abnormality {warning.abnormality}: {warning.code}: {warning.message}"
        )

    if args.output_dir:
        Path(args.output_dir).mkdir(parents=True, exist_ok=True)

    summary = []
    for abnormality in abnormalities:
        entry = abnormality.to_dict()
        if args.rows is not None:
            masks = []
            for i, outline in enumerate(abnormality.outlines):
                mask = outline.generate(args.rows, args.cols)
                name = "boundary" if i == 0 else f"core{i}"
                item = {
                    "outline": name,
                    "area": mask_area(mask),
                    "bbox": mask_to_bbox(mask),
                }
                if args.output_dir:
                    filename = f"{overlay_path.stem}-abn{abnormality.number}-{name}.png"
                    item["file"] = str(save_mask_png(mask, Path(args.output_dir) / filename))
                masks.append(item)
            entry["masks"] = masks
        summary.append(entry)

    print(json.dumps(summary, indent=2))
    return 0


def cmd_check_calibration(args) -> int:
    results = check_calibration(args.digitizer)
    for result in results:
        print(result.message)
    return 0 if all(r.ok for r in results) else CalibrationRangeError.exit_status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ddsm",
        description="Reconstruct normalised images and ground-truth masks from DDSM files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser(
        "convert", help="Convert a raw (LJPEG.1) file to a normalised plain PGM file"
    )
    convert.add_argument("raw_file", help="Raw file (big-endian 16-bit samples)")
    convert.add_argument("rows", type=int, help="Number of rows, from the case ICS file")
    convert.add_argument("cols", type=int, help="Number of columns, from the case ICS file")
    convert.add_argument("digitizer", help=DIGITIZER_HELP)
    convert.add_argument(
        "--output", help=f"Output file (default: <raw-file>{config.OUTPUT_SUFFIX})"
    )
    convert.set_defaults(func=cmd_convert)

    overlay = sub.add_parser("overlay", help="Parse an OVERLAY file and build its masks")
    overlay.add_argument("overlay_file", help="Path to the .OVERLAY file")
    overlay.add_argument("--rows", type=int, help="Image rows, enables mask generation")
    overlay.add_argument("--cols", type=int, help="Image columns, enables mask generation")
    overlay.add_argument("--output-dir", help="Write one PNG per outline here")
    overlay.set_defaults(func=cmd_overlay)

    check = sub.add_parser(
        "check-calibration", help="Check every raw value normalises into range"
    )
    check.add_argument("--digitizer", help=DIGITIZER_HELP)
    check.set_defaults(func=cmd_check_calibration)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )

    try:
        return args.func(args)
    except DDSMError as e:
        logger.error(f"{args.command} failed: {e.kind}: {e}")
        print(f"✗ {e}", file=sys.stderr)
        return e.exit_status


if __name__ == "__main__":
    sys.exit(main())
