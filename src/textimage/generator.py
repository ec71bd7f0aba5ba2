from collections.abc import Mapping
from pathlib import Path

from textimage.dither import quantize
from textimage.errors import ResourceError
from textimage.fonts import GlyphRenderer, TrueTypeFont
from textimage.imaging import load_rgb
from textimage.layout import compute_layout
from textimage.model import PackedImage, write_files
from textimage.options import AssetSpec, ImageOptions, TextOptions
from textimage.packing import align, pack_channel_plane, pack_gray, pack_indices
from textimage.raster import rasterize


def render_text(options: TextOptions | Mapping, font: GlyphRenderer | None = None) -> PackedImage:
    """Render text into a packed grayscale bitmap.

    The font file named in ``options`` is only opened after the options have
    been validated. Pass ``font`` to render with an already loaded renderer.
    """
    if not isinstance(options, TextOptions):
        options = TextOptions.from_mapping(options)
    if font is None:
        font = TrueTypeFont.load(options.font, options.font_size)

    layout = compute_layout(options.text, font, options.line_spacing, options.bit_depth)
    canvas = rasterize(layout, font, inverse=options.inverse)
    data = pack_gray(canvas.pixels, options.bit_depth)
    return PackedImage(width=layout.width, height=layout.height, data=data, bits_per_pixel=options.bit_depth)


def render_image(options: ImageOptions | Mapping) -> PackedImage:
    """Quantize an image onto a palette and pack it as a channel plane or as palette indices."""
    if not isinstance(options, ImageOptions):
        options = ImageOptions.from_mapping(options)

    pixels = load_rgb(options.image)
    palette = options.palette
    indices = palette.index_grid(quantize(pixels, palette, dither=options.dither))
    height, width = indices.shape

    if options.mode == "plane":
        data = pack_channel_plane(indices, options.channel)
        return PackedImage(width=align(width, 8), height=height, data=data, bits_per_pixel=1)

    bits = palette.bits_per_index
    data = pack_indices(indices, bits)
    return PackedImage(width=align(width, 8 // bits), height=height, data=data, bits_per_pixel=bits)


def render_asset(options: TextOptions | ImageOptions) -> PackedImage:
    if isinstance(options, TextOptions):
        return render_text(options)
    if isinstance(options, ImageOptions):
        return render_image(options)
    raise TypeError(f"Cannot render {type(options).__name__}")


def _write(files: dict[Path, bytes]) -> None:
    try:
        write_files(files)
    except OSError as e:
        raise ResourceError(f"Cannot write {e.filename or ', '.join(map(str, files))}: {e.strerror or e}") from e


def write_asset(image: PackedImage, output: str | Path, fmt: str = "bin", name: str | None = None) -> None:
    """Write ``image`` as a binary blob with JSON metadata, or as a C header.

    Either every file lands or none of them is touched.
    """
    _write(image.files(output, fmt, name))


def build_assets(assets: list[AssetSpec]) -> list[tuple[AssetSpec, PackedImage]]:
    """Render every asset, then write them all.

    Nothing is written if any asset fails to render or any of its files cannot be written.
    """
    rendered = [(asset, render_asset(asset.options)) for asset in assets]
    files: dict[Path, bytes] = {}
    for asset, image in rendered:
        files.update(image.files(asset.output, asset.format, asset.name))
    _write(files)
    return rendered
