import numpy as np

from textimage.errors import ConfigurationError, LayoutError

GRAY_DEPTHS = (1, 2, 4, 8)
INDEX_DEPTHS = (1, 2)


def align(value: int, multiple: int) -> int:
    """Round ``value`` up to the next multiple of ``multiple``."""
    return -(-value // multiple) * multiple


def _pack_rows(values: np.ndarray, bits: int) -> bytes:
    """Pack a (rows, cols) array of ``bits``-wide values MSB-first, first value in the high bits.

    ``cols`` must already be a multiple of ``8 // bits``.
    """
    per_byte = 8 // bits
    rows, cols = values.shape
    groups = values.astype(np.uint8).reshape(rows, cols // per_byte, per_byte)
    shifts = (np.arange(per_byte - 1, -1, -1) * bits).astype(np.uint8)
    packed = np.bitwise_or.reduce(groups << shifts, axis=2)
    return packed.astype(np.uint8).tobytes()


def _as_rows(values) -> np.ndarray:
    values = np.asarray(values)
    if values.ndim != 2:
        raise ValueError(f"Expected a 2-D (rows, cols) array, got shape {values.shape}")
    return values


def pack_gray(samples, bit_depth: int) -> bytes:
    """Pack 8-bit gray samples into ``bit_depth``-bit values, keeping each sample's top bits.

    Depth 8 returns the samples unchanged. Row widths must be a multiple of
    ``8 // bit_depth`` so that no byte straddles two rows.
    """
    if bit_depth not in GRAY_DEPTHS:
        raise ConfigurationError(f"Unsupported bit depth {bit_depth}, expected one of {GRAY_DEPTHS}")
    samples = _as_rows(samples).astype(np.uint8)
    if bit_depth == 8:
        return samples.tobytes()

    per_byte = 8 // bit_depth
    width = samples.shape[1]
    if width % per_byte:
        raise LayoutError(f"Row width {width} is not a multiple of {per_byte} pixels for {bit_depth}-bit packing")
    return _pack_rows(samples >> (8 - bit_depth), bit_depth)


def pack_channel_plane(indices, channel: int) -> bytes:
    """One bit per pixel, set where the palette index equals ``channel``.

    Each row is packed MSB-first and padded with zero bits to a whole byte.
    """
    plane = _as_rows(indices) == channel
    return np.packbits(plane, axis=1).tobytes()


def pack_indices(indices, bits: int = 2) -> bytes:
    """Pack palette indices at ``bits`` bits per pixel, MSB-first.

    Rows are padded independently with index 0 up to a whole byte.
    """
    if bits not in INDEX_DEPTHS:
        raise ConfigurationError(f"Unsupported index depth {bits}, expected one of {INDEX_DEPTHS}")
    indices = _as_rows(indices)
    if indices.size and int(indices.max()) >= 1 << bits:
        raise ValueError(f"Palette index {int(indices.max())} does not fit in {bits} bits")

    width = indices.shape[1]
    pad = align(width, 8 // bits) - width
    if pad:
        indices = np.pad(indices, ((0, 0), (0, pad)), constant_values=0)
    return _pack_rows(indices, bits)
