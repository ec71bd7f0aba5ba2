from dataclasses import dataclass

from textimage.errors import ConfigurationError, LayoutError
from textimage.fonts import GlyphRenderer
from textimage.packing import GRAY_DEPTHS, align

# Pixels reserved left of the first glyph for anti-aliased edges
MARGIN = 1


@dataclass(frozen=True)
class Layout:
    lines: tuple[str, ...]
    line_widths: tuple[int, ...]
    line_height: int
    line_spacing: int
    width: int
    height: int

    def line_origin(self, index: int) -> tuple[int, int]:
        """Top-left drawing position of line ``index``."""
        return (MARGIN, (self.line_height + self.line_spacing) * index - MARGIN)


def split_lines(text: str) -> list[str]:
    """Split on LF and CRLF only. A final line break does not start another line."""
    lines = text.split("\n")
    last = lines.pop()
    lines = [line.removesuffix("\r") for line in lines]
    if last:
        lines.append(last)
    return lines


def compute_layout(text: str, font: GlyphRenderer, line_spacing: int = 0, bit_depth: int = 1) -> Layout:
    """Measure ``text`` and size a canvas for it.

    The width is the widest line plus a one pixel margin, rounded up so that a
    packed row ends on a byte boundary. The height stacks every line with
    ``line_spacing`` pixels between consecutive lines.
    """
    if bit_depth not in GRAY_DEPTHS:
        raise ConfigurationError(f"Unsupported bit depth {bit_depth}, expected one of {GRAY_DEPTHS}")

    lines = split_lines(text)
    if not lines:
        raise LayoutError("Text has no lines to lay out")

    line_height = font.metrics().line_height
    if line_height <= 0:
        raise LayoutError(f"Font line height must be positive, got {line_height}")

    widths = tuple(font.measure(line) for line in lines)
    width = align(max(widths) + MARGIN, 8 // bit_depth)
    height = line_height * len(lines) + line_spacing * (len(lines) - 1)
    if height <= 0:
        raise LayoutError(
            f"Layout of {len(lines)} lines with line spacing {line_spacing} has non-positive height {height}"
        )

    return Layout(
        lines=tuple(lines),
        line_widths=widths,
        line_height=line_height,
        line_spacing=line_spacing,
        width=width,
        height=height,
    )
