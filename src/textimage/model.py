import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

from textimage.errors import LayoutError, ResourceError

FORMAT_VERSION = 1
BYTES_PER_LINE = 16
_DIMENSION_KEYS = ("width", "height", "bits_per_pixel")


def metadata_path(path: str | Path) -> Path:
    return Path(path).with_suffix(".json")


def c_identifier(name: str) -> str:
    ident = re.sub(r"\W", "_", name, flags=re.ASCII)
    if not ident or ident[0].isdigit():
        ident = "_" + ident
    return ident


def write_files(files: dict[Path, bytes]) -> None:
    """Write every file or none of them.

    Each file is staged as a hidden sibling first; only once all of them are on
    disk are they renamed into place.
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for path, content in files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(f".{path.name}.tmp")
            staged.append((tmp, path))
            tmp.write_bytes(content)
    except OSError:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
        raise
    for tmp, path in staged:
        os.replace(tmp, path)


@dataclass(frozen=True)
class PackedImage:
    """A packed bitmap ready for the display: rows of ``stride`` bytes, top to bottom."""

    width: int
    height: int
    data: bytes
    bits_per_pixel: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise LayoutError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if (self.width * self.bits_per_pixel) % 8:
            raise LayoutError(f"Row of {self.width} pixels at {self.bits_per_pixel} bpp does not end on a byte")
        expected = self.stride * self.height
        if len(self.data) != expected:
            raise ValueError(f"Expected {expected} bytes for {self.width}x{self.height}, got {len(self.data)}")

    @property
    def stride(self) -> int:
        return self.width * self.bits_per_pixel // 8

    def __iter__(self):
        # Allows ``width, height, data = image``
        return iter((self.width, self.height, self.data))

    def metadata(self) -> dict:
        return {
            "format_version": FORMAT_VERSION,
            "width": self.width,
            "height": self.height,
            "bits_per_pixel": self.bits_per_pixel,
            "length": len(self.data),
        }

    def files(self, path: str | Path, fmt: str = "bin", name: str | None = None) -> dict[Path, bytes]:
        """Contents of every file that makes up this image in ``fmt``, keyed by path."""
        path = Path(path)
        if fmt == "c":
            return {path: self.to_c_source(name or path.stem).encode("utf-8")}
        metadata = json.dumps(self.metadata(), indent=2) + "\n"
        return {path: self.data, metadata_path(path): metadata.encode("utf-8")}

    def save(self, path: str | Path) -> None:
        """Write the packed bytes to ``path`` and the dimensions to a ``.json`` file beside it."""
        write_files(self.files(path))

    @classmethod
    def load(cls, path: str | Path) -> "PackedImage":
        path = Path(path)
        try:
            data = path.read_bytes()
            with metadata_path(path).open(encoding="utf-8") as f:
                meta = json.load(f)
        except OSError as e:
            raise ResourceError(f"Cannot read packed image {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed metadata for {path}: {e}") from e
        if not isinstance(meta, dict):
            raise ValueError(f"Malformed metadata for {path}: expected an object")
        version = meta.get("format_version")
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported format version: {version}")
        if meta.get("length") != len(data):
            raise ValueError(f"Metadata length {meta.get('length')} does not match {len(data)} bytes in {path}")
        missing = [key for key in _DIMENSION_KEYS if not isinstance(meta.get(key), int)]
        if missing:
            raise ValueError(f"Malformed metadata for {path}: missing or non-integer {', '.join(missing)}")
        return cls(
            width=meta["width"],
            height=meta["height"],
            data=data,
            bits_per_pixel=meta["bits_per_pixel"],
        )

    def to_c_source(self, name: str) -> str:
        """Render a C header holding the dimensions and the packed bytes."""
        ident = c_identifier(name)
        macro = ident.upper()
        lines = [
            "/* Generated by textimage. Do not edit. */",
            "#pragma once",
            "",
            f"#define {macro}_WIDTH {self.width}",
            f"#define {macro}_HEIGHT {self.height}",
            f"#define {macro}_BPP {self.bits_per_pixel}",
            "",
            f"const unsigned char {ident}[{len(self.data)}] = {{",
        ]
        for i in range(0, len(self.data), BYTES_PER_LINE):
            chunk = self.data[i : i + BYTES_PER_LINE]
            lines.append("    " + ", ".join(f"0x{b:02X}" for b in chunk) + ",")
        lines.append("};")
        return "\n".join(lines) + "\n"
