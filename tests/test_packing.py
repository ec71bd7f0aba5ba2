import numpy as np
import pytest

from textimage.errors import ConfigurationError, LayoutError
from textimage.packing import align, pack_channel_plane, pack_gray, pack_indices


def _reference_gray(samples, depth):
    """Pack one flat run of samples with the explicit per-depth formulas."""
    out = []
    if depth == 4:
        for s0, s1 in zip(samples[0::2], samples[1::2]):
            out.append((s1 >> 4) | (s0 & 0xF0))
    elif depth == 2:
        for s0, s1, s2, s3 in zip(*(samples[i::4] for i in range(4))):
            out.append((s3 >> 6) | ((s2 >> 4) & 0x0C) | ((s1 >> 2) & 0x30) | (s0 & 0xC0))
    elif depth == 1:
        for group in zip(*(samples[i::8] for i in range(8))):
            byte = 0
            for i, s in enumerate(group):
                byte |= (s >> i) & (0x80 >> i)
            out.append(byte)
    return bytes(out)


def test_depth_8_is_identity():
    rng = np.random.default_rng(7)
    samples = rng.integers(0, 256, size=(5, 13), dtype=np.uint8)
    assert pack_gray(samples, 8) == samples.tobytes()


def test_depth_4_high_nibble_from_first_sample():
    assert pack_gray(np.array([[0xF0, 0x0F]], dtype=np.uint8), 4) == b"\xf0"


def test_depth_2_known_byte():
    # top two bits: 3, 1, 2, 3
    assert pack_gray(np.array([[0xC0, 0x40, 0x80, 0xFF]], dtype=np.uint8), 2) == b"\xdb"


def test_depth_1_known_byte():
    row = [0xFF, 0x00, 0x80, 0x7F, 0xFF, 0xFF, 0x00, 0x80]
    assert pack_gray(np.array([row], dtype=np.uint8), 1) == b"\xad"


@pytest.mark.parametrize("depth", [1, 2, 4])
def test_matches_explicit_formulas(depth):
    rng = np.random.default_rng(depth)
    samples = rng.integers(0, 256, size=(3, 16), dtype=np.uint8)
    expected = _reference_gray([int(s) for s in samples.ravel()], depth)
    assert pack_gray(samples, depth) == expected


@pytest.mark.parametrize("depth", [1, 2, 4])
def test_rows_pack_independently(depth):
    per_byte = 8 // depth
    samples = np.zeros((2, per_byte), dtype=np.uint8)
    samples[1, :] = 0xFF
    assert pack_gray(samples, depth) == b"\x00\xff"


@pytest.mark.parametrize("depth,width", [(1, 12), (2, 6), (4, 3)])
def test_unaligned_row_width_rejected(depth, width):
    with pytest.raises(LayoutError, match="not a multiple"):
        pack_gray(np.zeros((2, width), dtype=np.uint8), depth)


def test_unsupported_depth():
    with pytest.raises(ConfigurationError):
        pack_gray(np.zeros((1, 8), dtype=np.uint8), 3)


def test_requires_two_dimensional_input():
    with pytest.raises(ValueError):
        pack_gray(np.zeros(8, dtype=np.uint8), 1)


def test_channel_plane_solid_rows():
    white = np.ones((1, 8), dtype=np.uint8)
    black = np.zeros((1, 8), dtype=np.uint8)
    assert pack_channel_plane(white, 1) == b"\xff"
    assert pack_channel_plane(black, 1) == b"\x00"


def test_channel_plane_selects_only_requested_index():
    indices = np.array([[0, 1, 2, 2, 1, 0, 2, 0]], dtype=np.uint8)
    assert pack_channel_plane(indices, 2) == bytes([0b00110010])


def test_channel_plane_pads_each_row():
    indices = np.ones((2, 10), dtype=np.uint8)
    assert pack_channel_plane(indices, 1) == b"\xff\xc0\xff\xc0"


def test_indices_two_bits():
    assert pack_indices(np.array([[0, 1, 2, 3]], dtype=np.uint8), 2) == b"\x1b"


def test_indices_pad_each_row():
    indices = np.full((2, 5), 3, dtype=np.uint8)
    assert pack_indices(indices, 2) == b"\xff\xc0\xff\xc0"


def test_indices_one_bit():
    assert pack_indices(np.array([[1, 0, 1]], dtype=np.uint8), 1) == b"\xa0"


def test_indices_must_fit():
    with pytest.raises(ValueError, match="does not fit"):
        pack_indices(np.array([[0, 2]], dtype=np.uint8), 1)


def test_indices_unsupported_depth():
    with pytest.raises(ConfigurationError):
        pack_indices(np.zeros((1, 4), dtype=np.uint8), 4)


@pytest.mark.parametrize("value,multiple,expected", [(0, 8, 0), (1, 8, 8), (8, 8, 8), (9, 8, 16), (41, 1, 41), (41, 2, 42)])
def test_align(value, multiple, expected):
    assert align(value, multiple) == expected
