import os
import shutil
import subprocess

import numpy as np
import pytest
from PIL import Image, ImageDraw

from textimage.fonts import FontMetrics

_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu-sans-fonts/DejaVuSans.ttf",
    "/Library/Fonts/Arial.ttf",
]


def _find_font():
    """Find a TrueType font on the system."""
    for path in _FONT_CANDIDATES:
        if os.path.exists(path):
            return path
    if shutil.which("fc-match"):
        out = subprocess.run(["fc-match", "-f", "%{file}", "sans:fontformat=TrueType"], capture_output=True, text=True)
        if out.returncode == 0 and out.stdout.strip() and os.path.exists(out.stdout.strip()):
            return out.stdout.strip()
    return None


FONT_PATH = _find_font()


class BlockFont:
    """Glyph renderer with exact geometry: every non-space character is a solid block."""

    def __init__(self, ascent=16, descent=-4, line_gap=0, char_width=10):
        self.ascent = ascent
        self.descent = descent
        self.line_gap = line_gap
        self.char_width = char_width

    def metrics(self):
        return FontMetrics(ascent=self.ascent, descent=self.descent, line_gap=self.line_gap)

    def measure(self, line):
        return len(line) * self.char_width

    def draw(self, image, xy, line, fill):
        draw = ImageDraw.Draw(image)
        x, y = xy
        for i, char in enumerate(line):
            if char.isspace():
                continue
            x0 = x + i * self.char_width
            draw.rectangle((x0, y, x0 + self.char_width - 1, y + self.ascent - 1), fill=fill)


@pytest.fixture
def block_font():
    return BlockFont()


@pytest.fixture
def make_block_font():
    return BlockFont


@pytest.fixture
def font_path():
    if FONT_PATH is None:
        pytest.skip("No TrueType font found on system")
    return FONT_PATH


@pytest.fixture
def write_image(tmp_path):
    """Save an (h, w, 3) array of RGB values as a PNG and return its path."""

    def _write(pixels, name="image.png"):
        path = tmp_path / name
        Image.fromarray(np.asarray(pixels, dtype=np.uint8), "RGB").save(path)
        return path

    return _write
