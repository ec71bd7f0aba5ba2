"""Option schema shared by the library, the command line and asset manifests.

A manifest is a TOML file::

    version = 1
    format = "bin"            # optional: "bin" (blob + .json metadata) or "c"

    [[text]]
    name = "greeting"
    output = "build/greeting.bin"
    text = "Hello, world!"
    font = "fonts/LXGWWenKaiScreen.ttf"
    font_size = 48.0
    bit_depth = 4

    [[image]]
    name = "logo_red"
    output = "build/logo_red.bin"
    image = "logo.png"
    palette = "bwr"
    channel = 2

Relative paths are resolved against the manifest's directory.
"""

import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import MISSING, dataclass, fields
from os import PathLike
from pathlib import Path

from textimage.errors import ConfigurationError, ResourceError
from textimage.packing import GRAY_DEPTHS
from textimage.palette import Palette, get_palette

SCHEMA_VERSION = 1
OUTPUT_FORMATS = ("bin", "c")
IMAGE_MODES = ("plane", "indexed")
_MANIFEST_KEYS = {"version", "format", "text", "image"}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_path(name: str, value) -> str | Path:
    if isinstance(value, PathLike):
        value = Path(value)
    elif not isinstance(value, str):
        raise ConfigurationError(f"Option `{name}` expects a path string, got {type(value).__name__}")
    if not str(value):
        raise ConfigurationError(f"Required option `{name}` is missing")
    return value


def _from_mapping(cls, data: Mapping, context: str):
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{context}: expected a table of options, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            f"{context}: unknown option(s) {', '.join(map(repr, unknown))}, expected {', '.join(sorted(known))}"
        )
    for f in fields(cls):
        if f.default is MISSING and f.name not in data:
            raise ConfigurationError(f"{context}: required option `{f.name}` is missing")
    return cls(**data)


@dataclass
class TextOptions:
    text: str
    font: str | Path
    font_size: float = 16.0
    inverse: bool = False
    line_spacing: int = 0
    bit_depth: int = 1

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise ConfigurationError(f"Option `text` expects a string, got {type(self.text).__name__}")
        if not self.text:
            raise ConfigurationError("Required option `text` is missing")
        self.font = _require_path("font", self.font)
        if not _is_number(self.font_size):
            raise ConfigurationError(f"Option `font_size` expects a number, got {type(self.font_size).__name__}")
        if self.font_size <= 0:
            raise ConfigurationError(f"Option `font_size` must be positive, got {self.font_size}")
        self.font_size = float(self.font_size)
        if not isinstance(self.inverse, bool):
            raise ConfigurationError(f"Option `inverse` expects a boolean, got {type(self.inverse).__name__}")
        if not _is_int(self.line_spacing):
            raise ConfigurationError(
                f"Option `line_spacing` expects an integer, got {type(self.line_spacing).__name__}"
            )
        if self.bit_depth not in GRAY_DEPTHS or not _is_int(self.bit_depth):
            raise ConfigurationError(f"Option `bit_depth` must be one of {GRAY_DEPTHS}, got {self.bit_depth!r}")

    @classmethod
    def from_mapping(cls, data: Mapping, context: str = "text") -> "TextOptions":
        return _from_mapping(cls, data, context)


@dataclass
class ImageOptions:
    image: str | Path
    palette: Palette | str | Sequence = "bwr"
    channel: int = 0
    mode: str = "plane"
    dither: bool = True

    def __post_init__(self):
        self.image = _require_path("image", self.image)
        self.palette = get_palette(self.palette)
        if not _is_int(self.channel):
            raise ConfigurationError(f"Option `channel` expects an integer, got {type(self.channel).__name__}")
        if not 0 <= self.channel < len(self.palette):
            raise ConfigurationError(
                f"Option `channel` must index palette {self.palette.name!r} (0-{len(self.palette) - 1}), "
                f"got {self.channel}"
            )
        if self.mode not in IMAGE_MODES:
            raise ConfigurationError(f"Option `mode` must be one of {', '.join(IMAGE_MODES)}, got {self.mode!r}")
        if not isinstance(self.dither, bool):
            raise ConfigurationError(f"Option `dither` expects a boolean, got {type(self.dither).__name__}")

    @classmethod
    def from_mapping(cls, data: Mapping, context: str = "image") -> "ImageOptions":
        return _from_mapping(cls, data, context)


@dataclass
class AssetSpec:
    """One manifest entry: what to render and where to write it."""

    name: str
    options: TextOptions | ImageOptions
    output: Path
    format: str = "bin"


def _check_format(value, context: str) -> str:
    if value not in OUTPUT_FORMATS:
        raise ConfigurationError(f"{context}: `format` must be one of {', '.join(OUTPUT_FORMATS)}, got {value!r}")
    return value


def _resolve(base_dir: Path, value):
    if isinstance(value, str) and value:
        path = Path(value)
        return path if path.is_absolute() else base_dir / path
    return value


def parse_manifest(data: Mapping, base_dir: str | Path = ".") -> list[AssetSpec]:
    base_dir = Path(base_dir)
    unknown = sorted(set(data) - _MANIFEST_KEYS)
    if unknown:
        raise ConfigurationError(f"manifest: unknown key(s) {', '.join(map(repr, unknown))}")
    if "version" not in data:
        raise ConfigurationError("manifest: required key `version` is missing")
    if data["version"] != SCHEMA_VERSION:
        raise ConfigurationError(f"manifest: unsupported version {data['version']!r}, expected {SCHEMA_VERSION}")
    default_format = _check_format(data.get("format", "bin"), "manifest")

    assets: list[AssetSpec] = []
    for kind, cls, path_key in (("text", TextOptions, "font"), ("image", ImageOptions, "image")):
        tables = data.get(kind, [])
        if not isinstance(tables, list):
            raise ConfigurationError(f"manifest: `{kind}` must be an array of tables ([[{kind}]])")
        for i, table in enumerate(tables):
            context = f"{kind}[{i}]"
            if not isinstance(table, Mapping):
                raise ConfigurationError(f"{context}: expected a table")
            table = dict(table)
            name = table.pop("name", None)
            output = table.pop("output", None)
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"{context}: required key `name` is missing")
            if not isinstance(output, str) or not output:
                raise ConfigurationError(f"{context} ({name}): required key `output` is missing")
            fmt = _check_format(table.pop("format", default_format), f"{context} ({name})")
            if path_key in table:
                table[path_key] = _resolve(base_dir, table[path_key])
            options = cls.from_mapping(table, f"{context} ({name})")
            assets.append(AssetSpec(name=name, options=options, output=_resolve(base_dir, output), format=fmt))

    if not assets:
        raise ConfigurationError("manifest: no [[text]] or [[image]] assets defined")
    seen: set[str] = set()
    for asset in assets:
        if asset.name in seen:
            raise ConfigurationError(f"manifest: duplicate asset name {asset.name!r}")
        seen.add(asset.name)
    return assets


def load_manifest(path: str | Path) -> list[AssetSpec]:
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ResourceError(f"Cannot read manifest {path}: {e.strerror or e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed manifest {path}: {e}") from e
    return parse_manifest(data, base_dir=path.parent)
