"""Command line front-end for `.paint` conversion.

Subcommands:
    info       Print a canvas summary (optionally write an upscaled preview)
    to-image   Render a `.paint` file as PNG/JPEG
    to-paint   Convert an image into a `.paint` file
    edit       Change title/author/name/generation/version and re-save
    split      Split one image across a grid of canvases

Usage:
    jop-paint info art.paint
    jop-paint to-image art.paint -o art.png --scale 8
    jop-paint to-paint sunset.png -o sunset.paint --canvas-type 1 --title Sunset --author Me
    jop-paint edit art.paint -o art_fixed.paint --title "New title"
    jop-paint split sunset.png -d out/ --grid 2 2 --title Sunset --manifest

Exit codes:
    0  success
    1  conversion, format or I/O error (logged at ERROR)
    2  usage error (argparse)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from . import __version__
from .nbt import NBTError
from .paint import (
    CANVAS_TYPES,
    UNSET_DEFAULTS,
    PaintCanvas,
    PaintError,
    check_title_author,
    create_paint_file,
    image_scale_for_size,
    image_to_paint,
    paint_to_image,
    parse_paint_file,
    split_image_collecting_errors,
)
from .utils import fs, hashing, validators
from .utils.logging_config import install_excepthook, setup_logging
from .utils.validators import ConverterConfigV1

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.yaml"

# Errors turned into exit code 1; anything else is a bug and propagates
_HANDLED_ERRORS = (NBTError, PaintError, FileNotFoundError, ValueError, RuntimeError, OSError)


# ============================================================================
# HELPERS
# ============================================================================

def _load_config(path: Optional[Path]) -> ConverterConfigV1:
    if path is None:
        return validators.default_converter_config()
    return validators.load_converter_config(path)


def _configure_logging(args: argparse.Namespace, cfg: Optional[ConverterConfigV1]) -> None:
    """Command line flags win over the config file's logging section."""
    log_cfg = cfg.logging if cfg is not None else validators.LoggingConfig()
    setup_logging(
        log_level=args.log_level or log_cfg.log_level,
        log_file=args.log_file or log_cfg.log_file,
        json=args.json_logs or log_cfg.json_logs,
        color=log_cfg.color,
        quiet_libs=["PIL"],
        context={"app": "jop-paint", "cmd": args.command},
    )


def _read_canvas(path: Path) -> PaintCanvas:
    canvas = parse_paint_file(fs.read_bytes(path))
    logger.debug(f"Loaded {path} ({canvas.info.name}, {len(canvas.pixels)} pixels)")
    return canvas


def _write_canvas(canvas: PaintCanvas, path: Path) -> None:
    fs.atomic_write_bytes(path, create_paint_file(canvas))
    logger.info(f"Wrote {path}")


def _warn_title_author(title: Optional[str], author: Optional[str]) -> None:
    advisory = check_title_author(title, author)
    if advisory:
        logger.warning(advisory)


def _default_output(source: Path, title: str, ext: str) -> Path:
    """Output next to the source, named after the sanitised title."""
    return source.parent / fs.safe_filename(title, ext)


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_info(args: argparse.Namespace, cfg: ConverterConfigV1) -> int:
    canvas = _read_canvas(args.file)
    for key, value in canvas.describe().items():
        print(f"{key + ':':12s} {value}")

    if args.preview is not None:
        preview = paint_to_image(canvas, cfg.defaults.preview_scale)
        fs.atomic_save_image(preview, args.preview)
        logger.info(f"Wrote preview {args.preview} ({preview.width}x{preview.height})")
    return 0


def cmd_to_image(args: argparse.Namespace, cfg: ConverterConfigV1) -> int:
    canvas = _read_canvas(args.file)

    if args.scale is not None:
        scale = args.scale
    else:
        size = args.size if args.size is not None else cfg.defaults.image_size
        scale = image_scale_for_size(canvas.canvas_type, size)

    output = args.output or _default_output(args.file, canvas.title, cfg.defaults.image_format)
    img = paint_to_image(canvas, scale)
    fs.atomic_save_image(img, output)
    logger.info(f"Wrote {output} ({img.width}x{img.height}, scale {max(1, scale)})")
    return 0


def cmd_to_paint(args: argparse.Namespace, cfg: ConverterConfigV1) -> int:
    canvas_type = cfg.defaults.canvas_type if args.canvas_type is None else args.canvas_type
    _warn_title_author(args.title, args.author)

    canvas = image_to_paint(
        fs.load_image(args.image),
        canvas_type,
        title=args.title,
        author=args.author,
        name=args.name,
    )
    canvas.update_metadata(
        generation=UNSET_DEFAULTS.generation if args.generation is None else args.generation,
        version=UNSET_DEFAULTS.version if args.version is None else args.version,
    )

    output = args.output or _default_output(args.image, canvas.title, "paint")
    _write_canvas(canvas, output)
    return 0


def cmd_edit(args: argparse.Namespace, cfg: ConverterConfigV1) -> int:
    canvas = _read_canvas(args.file)
    canvas.update_metadata(
        title=args.title,
        author=args.author,
        name=args.name,
        generation=args.generation,
        version=args.version,
    )
    _warn_title_author(canvas.title, canvas.author)

    output = args.output or _default_output(args.file, canvas.title, "paint")
    _write_canvas(canvas, output)
    return 0


def cmd_split(args: argparse.Namespace, cfg: ConverterConfigV1) -> int:
    canvas_type = cfg.defaults.canvas_type if args.canvas_type is None else args.canvas_type
    grid_width, grid_height = args.grid if args.grid is not None else cfg.defaults.grid
    _warn_title_author(args.title, args.author)

    tiles, errors = split_image_collecting_errors(
        fs.load_image(args.image),
        canvas_type,
        grid_width,
        grid_height,
        title=args.title,
        author=args.author,
        generation=UNSET_DEFAULTS.generation if args.generation is None else args.generation,
        version=UNSET_DEFAULTS.version if args.version is None else args.version,
    )

    out_dir = fs.ensure_dir(args.out_dir)
    entries: List[Dict[str, object]] = []
    for tile in tiles:
        # Tile names carry the raw title; keep them filesystem-safe
        path = out_dir / fs.safe_filename(tile.filename.rsplit(".", 1)[0], "paint")
        data = create_paint_file(tile.canvas)
        fs.atomic_write_bytes(path, data)
        entries.append({
            'filename': path.name,
            'row': tile.row + 1,
            'col': tile.col + 1,
            'name': tile.canvas.name,
            'sha256': hashing.sha256_bytes(data),
        })
        logger.debug(f"Wrote tile ({tile.row + 1}, {tile.col + 1}) to {path}")

    for err in errors:
        logger.error(f"Tile ({err.row + 1}, {err.col + 1}) failed: {err.error}")

    if args.manifest:
        manifest = {
            'source': str(args.image),
            'canvas_type': CANVAS_TYPES[canvas_type].name,
            'grid': [grid_width, grid_height],
            'title': args.title or "",
            'author': args.author or "",
            'tiles': entries,
        }
        fs.atomic_yaml_dump(manifest, out_dir / MANIFEST_NAME)
        logger.info(f"Wrote manifest {out_dir / MANIFEST_NAME}")

    logger.info(f"Wrote {len(tiles)}/{grid_width * grid_height} canvases to {out_dir}")
    return 1 if errors else 0


COMMANDS: Dict[str, Callable[[argparse.Namespace, ConverterConfigV1], int]] = {
    'info': cmd_info,
    'to-image': cmd_to_image,
    'to-paint': cmd_to_paint,
    'edit': cmd_edit,
    'split': cmd_split,
}


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def _image_size(value: str):
    if value == "native":
        return value
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected 'native' or a positive integer, got '{value}'")
    if size < 1:
        raise argparse.ArgumentTypeError(f"size must be positive, got {size}")
    return size


def _add_metadata_args(parser: argparse.ArgumentParser, with_name: bool = True) -> None:
    parser.add_argument("--title", default=None, help="Painting title (needs --author to be saved)")
    parser.add_argument("--author", default=None, help="Painting author (needs --title to be saved)")
    if with_name:
        parser.add_argument("--name", default=None, help="Unique painting id (default: generated)")
    parser.add_argument(
        "--generation",
        type=int,
        default=None,
        help=f"Generation field (default: {UNSET_DEFAULTS.generation}, editable in-game)",
    )
    parser.add_argument(
        "--version",
        type=int,
        default=None,
        help=f"Version field 'v' (default: {UNSET_DEFAULTS.version}, editable in-game)",
    )


def _add_canvas_type_arg(parser: argparse.ArgumentParser) -> None:
    choices = ", ".join(f"{t.id}={t.name} {t.width}x{t.height}" for t in CANVAS_TYPES.values())
    parser.add_argument(
        "--canvas-type",
        type=int,
        choices=sorted(CANVAS_TYPES),
        default=None,
        help=f"Canvas type ({choices}; default from config)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with global options and one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="jop-paint",
        description="Convert between Joy of Painting .paint files and images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Canvas types:
  0  Small  16x16
  1  Large  32x32
  2  Long   32x16
  3  Tall   16x32

Examples:
  jop-paint info art.paint
  jop-paint to-image art.paint -o art.png --size 512
  jop-paint to-paint photo.jpg --canvas-type 3 --title Tower --author Me
  jop-paint split mural.png -d mural/ --grid 3 2 --title Mural --manifest
""",
    )
    parser.add_argument("--config", type=Path, default=None, help="converter.v1.yaml config file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default from config, INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also log to this file")
    parser.add_argument(
        "--json-logs", action="store_true",
        help="JSON lines in the --log-file (console output stays human readable; "
             "no effect without a log file)",
    )
    parser.add_argument("-V", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("info", help="Print a canvas summary")
    p.add_argument("file", type=Path, help=".paint file")
    p.add_argument("--preview", type=Path, default=None, help="Also write an upscaled preview image")

    p = sub.add_parser("to-image", help="Render a .paint file as an image")
    p.add_argument("file", type=Path, help=".paint file")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output image (default: <title>.<format>)")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--scale", type=int, default=None, help="Integer upscale factor")
    group.add_argument("--size", type=_image_size, default=None, help="'native' or target size in px")

    p = sub.add_parser("to-paint", help="Convert an image into a .paint file")
    p.add_argument("image", type=Path, help="Source image (any format Pillow reads)")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output .paint (default: <title>.paint)")
    _add_canvas_type_arg(p)
    _add_metadata_args(p)

    p = sub.add_parser("edit", help="Edit .paint metadata")
    p.add_argument("file", type=Path, help=".paint file")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output .paint (default: <title>.paint)")
    _add_metadata_args(p)

    p = sub.add_parser("split", help="Split an image across a grid of canvases")
    p.add_argument("image", type=Path, help="Source image")
    p.add_argument("-d", "--out-dir", type=Path, required=True, help="Output directory")
    p.add_argument(
        "--grid",
        type=int,
        nargs=2,
        metavar=("W", "H"),
        default=None,
        help="Grid width and height in canvases (default from config)",
    )
    p.add_argument("--manifest", action="store_true", help=f"Write {MANIFEST_NAME} with tile hashes")
    _add_canvas_type_arg(p)
    _add_metadata_args(p, with_name=False)

    return parser


# ============================================================================
# ENTRYPOINT
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = _load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _configure_logging(args, None)
        logger.error(f"Invalid configuration: {e}")
        return 1

    _configure_logging(args, cfg)
    try:
        return COMMANDS[args.command](args, cfg)
    except _HANDLED_ERRORS as e:
        logger.error(f"{args.command} failed: {e}")
        logger.debug("Traceback", exc_info=True)
        return 1


def run() -> None:
    """Console script entry: log uncaught exceptions, then exit with main()'s code."""
    install_excepthook()
    sys.exit(main())


if __name__ == "__main__":
    run()
