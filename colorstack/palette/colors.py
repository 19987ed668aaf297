import re
import numpy as np
from typing import Sequence, Tuple
from colorstack.errors import InvalidInputError


HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')

RGB = Tuple[int, int, int]


def is_valid_hex_color(color) -> bool:
    return isinstance(color, str) and HEX_COLOR_PATTERN.match(color) is not None


def hex_to_rgb(color: str) -> RGB:
    """Convert a '#rrggbb' string (any case) to an (r, g, b) tuple."""
    if not is_valid_hex_color(color):
        raise InvalidInputError(f"Invalid hex color: {color!r}")
    value = int(color[1:], 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert channel values to a lowercase '#rrggbb' string, rounding half up."""
    channels = []
    for value in (r, g, b):
        channel = int(np.floor(float(value) + 0.5))
        channels.append(min(max(channel, 0), 255))
    return '#' + ''.join(f"{c:02x}" for c in channels)


def color_distance(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Squared Euclidean distance in RGB space."""
    return (c1[0] - c2[0]) ** 2 + (c1[1] - c2[1]) ** 2 + (c1[2] - c2[2]) ** 2


def luminance(color: str) -> float:
    r, g, b = hex_to_rgb(color)
    return 0.299 * r + 0.587 * g + 0.114 * b


def squared_distances(points: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Pairwise squared RGB distances, shape (len(points), len(centers))."""
    points = np.asarray(points, dtype=np.int64)
    centers = np.asarray(centers)
    if np.issubdtype(centers.dtype, np.integer):
        centers = centers.astype(np.int64)
    else:
        points = points.astype(np.float64)
    diff = points[:, None, :] - centers[None, :, :]
    return np.einsum('ijk,ijk->ij', diff, diff)


def nearest_index(points: np.ndarray, centers: np.ndarray, chunk_size: int = 65536) -> np.ndarray:
    """Index of the closest center for each point; ties go to the lowest index."""
    points = np.asarray(points)
    result = np.empty(len(points), dtype=np.int64)

    # Chunked so full-resolution images don't allocate an (N, K, 3) block at once
    for start in range(0, len(points), chunk_size):
        stop = start + chunk_size
        result[start:stop] = np.argmin(squared_distances(points[start:stop], centers), axis=1)

    return result
