import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont

from textimage.errors import ResourceError


@dataclass(frozen=True)
class FontMetrics:
    ascent: float
    descent: float  # negative: distance below the baseline
    line_gap: float = 0.0

    @property
    def line_height(self) -> int:
        return math.ceil(abs(self.ascent - self.descent + self.line_gap))


class GlyphRenderer(Protocol):
    def metrics(self) -> FontMetrics:
        """Vertical metrics at the renderer's scale."""
        ...

    def measure(self, line: str) -> int:
        """Rendered width of a single line in pixels."""
        ...

    def draw(self, image: Image.Image, xy: tuple[int, int], line: str, fill: int) -> None:
        """Paint ``line`` into a grayscale image with its top-left corner at ``xy``."""
        ...


class TrueTypeFont:
    """Glyph renderer backed by FreeType through Pillow."""

    def __init__(self, font: ImageFont.FreeTypeFont):
        self.font = font

    @classmethod
    def load(cls, path: str | Path, size: float) -> "TrueTypeFont":
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ResourceError(f"Cannot read font file {path}: {e.strerror or e}") from e
        try:
            font = ImageFont.truetype(io.BytesIO(data), size)
        except OSError as e:
            raise ResourceError(f"Cannot load font {path}: {e}") from e
        return cls(font)

    def metrics(self) -> FontMetrics:
        # Pillow reports the descent as a positive distance
        ascent, descent = self.font.getmetrics()
        return FontMetrics(ascent=float(ascent), descent=-float(descent))

    def measure(self, line: str) -> int:
        if not line:
            return 0
        return max(0, math.ceil(self.font.getbbox(line)[2]))

    def draw(self, image: Image.Image, xy: tuple[int, int], line: str, fill: int) -> None:
        ImageDraw.Draw(image).text(xy, line, fill=fill, font=self.font)
