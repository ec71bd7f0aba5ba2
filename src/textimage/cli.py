import argparse
import sys
from pathlib import Path

from textimage.errors import TextImageError
from textimage.generator import build_assets, render_image, render_text, write_asset
from textimage.model import PackedImage
from textimage.options import IMAGE_MODES, OUTPUT_FORMATS, ImageOptions, TextOptions, load_manifest
from textimage.packing import GRAY_DEPTHS

C_SUFFIXES = {".h", ".c"}


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", required=True, help="Output file")
    parser.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="bin: packed bytes plus a .json metadata file; c: C header (default: c for .h/.c outputs, else bin)",
    )
    parser.add_argument("-n", "--name", default=None, help="Symbol name for C output (default: output file stem)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textimage", description="Generate packed bitmaps for e-paper and OLED displays"
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Report each generated asset")
    commands = parser.add_subparsers(dest="command", required=True)

    text = commands.add_parser("text", help="Render text with a TrueType/OpenType font")
    text.add_argument("text", help="Text to render, may contain newlines ('-' reads standard input)")
    text.add_argument("--font", required=True, help="Path to a font file")
    text.add_argument("-s", "--size", type=float, default=16.0, help="Font size in pixels (default: 16.0)")
    text.add_argument("-i", "--inverse", action="store_true", default=False, help="Dark text on a light background")
    text.add_argument("-l", "--line-spacing", type=int, default=0, help="Extra pixels between lines (default: 0)")
    text.add_argument(
        "-d", "--depth", type=int, choices=GRAY_DEPTHS, default=1, help="Bits per pixel of the output (default: 1)"
    )
    _add_output_arguments(text)

    image = commands.add_parser("image", help="Dither an image onto a fixed display palette")
    image.add_argument("image", help="Path to input image")
    image.add_argument(
        "-p", "--palette", default="bwr", help="bw, bwr, bwry, or comma-separated #RRGGBB colors (default: bwr)"
    )
    image.add_argument("-c", "--channel", type=int, default=0, help="Palette index to emit as a plane (default: 0)")
    image.add_argument(
        "-m",
        "--mode",
        choices=IMAGE_MODES,
        default="plane",
        help="plane: one bit per pixel for --channel; indexed: packed palette indices (default: plane)",
    )
    image.add_argument("--no-dither", action="store_true", default=False, help="Map to the nearest color only")
    _add_output_arguments(image)

    build = commands.add_parser("build", help="Generate every asset listed in a TOML manifest")
    build.add_argument("manifest", help="Path to manifest file")

    return parser


def _output_format(args) -> str:
    if args.format is not None:
        return args.format
    return "c" if Path(args.output).suffix.lower() in C_SUFFIXES else "bin"


def _report(name: str, image: PackedImage, output: str | Path) -> None:
    print(
        f"{name}: {image.width}x{image.height}, {image.bits_per_pixel} bpp, {len(image.data)} bytes -> {output}",
        file=sys.stderr,
    )


def _run(args) -> None:
    if args.command == "build":
        for asset, image in build_assets(load_manifest(args.manifest)):
            if args.verbose:
                _report(asset.name, image, asset.output)
        return

    if args.command == "text":
        text = sys.stdin.read() if args.text == "-" else args.text
        options = TextOptions(
            text=text,
            font=args.font,
            font_size=args.size,
            inverse=args.inverse,
            line_spacing=args.line_spacing,
            bit_depth=args.depth,
        )
        image = render_text(options)
    else:
        options = ImageOptions(
            image=args.image,
            palette=args.palette,
            channel=args.channel,
            mode=args.mode,
            dither=not args.no_dither,
        )
        image = render_image(options)

    name = args.name or Path(args.output).stem
    write_asset(image, args.output, _output_format(args), name)
    if args.verbose:
        _report(name, image, args.output)


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    try:
        _run(args)
    except TextImageError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
