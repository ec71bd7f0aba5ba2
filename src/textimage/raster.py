from dataclasses import dataclass

import numpy as np
from PIL import Image

from textimage.fonts import GlyphRenderer
from textimage.layout import Layout


@dataclass
class Canvas:
    pixels: np.ndarray  # (height, width) uint8, row-major

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def samples(self) -> bytes:
        return self.pixels.tobytes()


def luma_pair(inverse: bool) -> tuple[int, int]:
    """Return (background, foreground) gray levels."""
    return (0xFF, 0x00) if inverse else (0x00, 0xFF)


def rasterize(layout: Layout, font: GlyphRenderer, inverse: bool = False) -> Canvas:
    background, foreground = luma_pair(inverse)
    image = Image.new("L", (layout.width, layout.height), background)
    for i, line in enumerate(layout.lines):
        font.draw(image, layout.line_origin(i), line, foreground)
    return Canvas(np.array(image, dtype=np.uint8))
