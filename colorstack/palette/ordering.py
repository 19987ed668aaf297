import numpy as np
from typing import List, Sequence, Tuple
from colorstack.palette.colors import color_distance, hex_to_rgb, luminance
from colorstack.palette.extractor import as_rgba


def detect_background_color(pixels, width: int, height: int) -> Tuple[int, int, int]:
    """Most frequent color along the one-pixel image border."""
    grid = as_rgba(pixels, width, height).reshape(height, width, 4)[:, :, :3]

    # Scan order: top/bottom pairs left to right, then left/right pairs without corners
    rows = np.stack([grid[0, :], grid[height - 1, :]], axis=1).reshape(-1, 3)
    columns = np.stack([grid[1:height - 1, 0], grid[1:height - 1, width - 1]], axis=1).reshape(-1, 3)
    border_pixels = np.concatenate([rows, columns])

    # Ties go to the color seen first in the scan
    colors, first_seen, counts = np.unique(border_pixels, axis=0, return_index=True, return_counts=True)
    best = max(range(len(colors)), key=lambda i: (counts[i], -first_seen[i]))
    return tuple(int(c) for c in colors[best])


def order_for_printing(palette: Sequence[str], background: Sequence[int]) -> List[str]:
    """Put the color nearest the background first, then the rest darkest to lightest."""
    if not palette:
        return []

    distances = [color_distance(hex_to_rgb(color), background) for color in palette]
    base_index = distances.index(min(distances))

    base = palette[base_index]
    remaining = [color for i, color in enumerate(palette) if i != base_index]
    remaining.sort(key=luminance)

    return [base] + remaining


def invert_palette(palette: Sequence[str]) -> List[str]:
    return list(reversed(palette))
