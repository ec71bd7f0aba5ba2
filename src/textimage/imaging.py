from pathlib import Path

import numpy as np
from PIL import Image

from textimage.errors import LayoutError, ResourceError


def load_rgb(image: Image.Image | str | Path) -> np.ndarray:
    """Decode an image into an (h, w, 3) uint8 RGB array."""
    if not isinstance(image, Image.Image):
        path = Path(image)
        try:
            with Image.open(path) as opened:
                image = opened.convert("RGB")
        except (OSError, Image.DecompressionBombError) as e:
            raise ResourceError(f"Cannot decode image {path}: {e}") from e
    else:
        image = image.convert("RGB")

    if image.width == 0 or image.height == 0:
        raise LayoutError(f"Image has no pixels ({image.width}x{image.height})")
    return np.array(image, dtype=np.uint8)
