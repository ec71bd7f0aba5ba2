import numpy as np

from textimage.palette import Palette

# (dx, dy, weight) for not-yet-visited neighbours in raster order
FLOYD_STEINBERG = [
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
]


def quantize(pixels: np.ndarray, palette: Palette, dither: bool = True) -> np.ndarray:
    """Map an RGB image onto ``palette``.

    With ``dither`` the quantization error of each pixel is diffused to its
    unvisited neighbours using Floyd-Steinberg weights. Weights that would fall
    outside the image are dropped and diffused values are clamped to 0-255.

    Args:
        pixels: (h, w, 3) array of RGB values.
        palette: target colors.
        dither: diffuse quantization error; plain nearest-color mapping otherwise.

    Returns:
        uint8 array of shape (h, w, 3) whose every pixel is a palette color.
    """
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (h, w, 3) RGB array, got shape {pixels.shape}")

    colors = palette.array
    if not dither:
        return colors[palette.index_grid(pixels)]

    buf = pixels.astype(np.float64)
    h, w, _ = buf.shape
    out = np.empty((h, w, 3), dtype=np.uint8)

    for y in range(h):
        for x in range(w):
            old = buf[y, x]
            new = colors[palette.index_of(old)]
            out[y, x] = new
            error = old - new
            if not error.any():
                continue
            for dx, dy, weight in FLOYD_STEINBERG:
                nx = x + dx
                ny = y + dy
                if 0 <= nx < w and ny < h:
                    buf[ny, nx] = np.clip(buf[ny, nx] + error * weight, 0.0, 255.0)

    return out
