import math
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property

import numpy as np

from textimage.errors import ConfigurationError

Color = tuple[int, int, int]

BLACK = (0x00, 0x00, 0x00)
WHITE = (0xFF, 0xFF, 0xFF)
RED = (0xFF, 0x00, 0x00)
YELLOW = (0xFF, 0xFF, 0x00)

METRICS = ("squared", "manhattan")
MIN_COLORS = 2
MAX_COLORS = 4


def parse_color(value) -> Color:
    """Parse ``"#RRGGBB"``, ``"RRGGBB"``, ``0xRRGGBB`` or an ``(r, g, b)`` sequence."""
    if isinstance(value, str):
        digits = value.strip().removeprefix("#")
        if len(digits) != 6:
            raise ConfigurationError(f"Invalid color {value!r}: expected #RRGGBB")
        try:
            value = int(digits, 16)
        except ValueError:
            raise ConfigurationError(f"Invalid color {value!r}: expected #RRGGBB") from None
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value <= 0xFFFFFF:
            raise ConfigurationError(f"Color 0x{value:X} is out of range")
        return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)
    if isinstance(value, Sequence) and len(value) == 3:
        if all(isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in value):
            return (value[0], value[1], value[2])
    raise ConfigurationError(f"Invalid color {value!r}")


@dataclass(frozen=True)
class Palette:
    """Ordered set of display colors. A color's position is its code on the wire."""

    name: str
    colors: tuple[Color, ...]
    metric: str = "squared"

    def __post_init__(self):
        colors = tuple(parse_color(c) for c in self.colors)
        if not MIN_COLORS <= len(colors) <= MAX_COLORS:
            raise ConfigurationError(
                f"Palette {self.name!r} has {len(colors)} colors, expected {MIN_COLORS} to {MAX_COLORS}"
            )
        if self.metric not in METRICS:
            raise ConfigurationError(f"Unknown color metric {self.metric!r}, expected one of {', '.join(METRICS)}")
        object.__setattr__(self, "colors", colors)

    def __len__(self) -> int:
        return len(self.colors)

    @property
    def bits_per_index(self) -> int:
        return max(1, math.ceil(math.log2(len(self.colors))))

    @cached_property
    def array(self) -> np.ndarray:
        """Colors as a read-only (n, 3) uint8 array, in palette order."""
        array = np.array(self.colors, dtype=np.uint8)
        array.flags.writeable = False
        return array

    @cached_property
    def _targets(self) -> np.ndarray:
        targets = self.array.astype(np.float64)
        targets.flags.writeable = False
        return targets

    def distances(self, color) -> np.ndarray:
        """Distance from ``color`` to every palette entry."""
        diff = self._targets - np.asarray(color, dtype=np.float64)
        if self.metric == "manhattan":
            return np.abs(diff).sum(axis=-1)
        return (diff * diff).sum(axis=-1)

    def index_of(self, color) -> int:
        # argmin keeps the first entry on ties
        return int(np.argmin(self.distances(color)))

    def color_of(self, index: int) -> Color:
        return self.colors[index]

    def index_grid(self, pixels: np.ndarray) -> np.ndarray:
        """Nearest palette index for every pixel of an (h, w, 3) image. Returns (h, w) uint8."""
        pixels = np.asarray(pixels, dtype=np.int32)
        diff = pixels[:, :, None, :] - self.array.astype(np.int32)[None, None, :, :]
        if self.metric == "manhattan":
            dist = np.abs(diff).sum(axis=-1)
        else:
            dist = (diff * diff).sum(axis=-1)
        return dist.argmin(axis=-1).astype(np.uint8)


BUILTIN_PALETTES = {
    "bw": Palette("bw", (BLACK, WHITE)),
    "bwr": Palette("bwr", (BLACK, WHITE, RED)),
    "bwry": Palette("bwry", (BLACK, WHITE, RED, YELLOW)),
}


def get_palette(value) -> Palette:
    """Resolve a palette from a built-in name, a comma-separated color list or a sequence of colors."""
    if isinstance(value, Palette):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in BUILTIN_PALETTES:
            return BUILTIN_PALETTES[key]
        if "," not in key and not key.startswith("#"):
            raise ConfigurationError(
                f"Unknown palette {value!r}, expected one of {', '.join(BUILTIN_PALETTES)} or a list of colors"
            )
        return Palette("custom", tuple(part for part in key.split(",") if part.strip()))
    if isinstance(value, Sequence):
        return Palette("custom", tuple(value))
    raise ConfigurationError(f"Invalid palette {value!r}")
