import numpy as np
from dataclasses import dataclass
from typing import List, Optional
from colorstack.errors import InvalidInputError
from colorstack.palette.colors import (
    color_distance,
    hex_to_rgb,
    nearest_index,
    rgb_to_hex,
    squared_distances,
)


@dataclass
class ExtractionSettings:
    iterations: int = 20
    sample_stride: int = 4  # cluster on every 4th pixel
    quantization_level: int = 32
    similarity_threshold: int = 10000  # squared RGB distance
    dedupe_attempts: int = 100


@dataclass
class PaletteResult:
    palette: List[str]
    band_map: np.ndarray


def as_rgba(pixels, width: int, height: int) -> np.ndarray:
    """Validate a flat RGBA8 buffer and view it as an (N, 4) uint8 array."""
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")

    if isinstance(pixels, (bytes, bytearray, memoryview)):
        data = np.frombuffer(pixels, dtype=np.uint8)
    else:
        data = np.asarray(pixels)

    if data.size == 0:
        raise InvalidInputError("Pixel buffer is empty")
    if data.dtype != np.uint8:
        if not np.issubdtype(data.dtype, np.integer):
            if not np.all(np.isfinite(data)) or not np.all(data == np.round(data)):
                raise InvalidInputError("Pixel samples must be whole numbers")
        if data.min() < 0 or data.max() > 255:
            raise InvalidInputError("Pixel samples must be in the range 0-255")
        data = data.astype(np.uint8)

    expected = 4 * width * height
    if data.size != expected:
        raise InvalidInputError(
            f"Pixel buffer holds {data.size} samples, expected {expected} for {width}x{height} RGBA"
        )

    return data.reshape(-1, 4)


def preprocess_pixels(rgba: np.ndarray, quantization_level: int = 32) -> np.ndarray:
    """Snap RGB channels to a coarse grid so near-identical colors cluster together."""
    processed = rgba.copy()
    rgb = rgba[:, :3].astype(np.float64)
    snapped = np.floor(rgb / quantization_level + 0.5) * quantization_level
    processed[:, :3] = np.clip(snapped, 0, 255).astype(np.uint8)
    return processed


def sample_pixels(rgba: np.ndarray, stride: int = 4) -> np.ndarray:
    """Systematic sample of RGB rows used for clustering."""
    return rgba[::stride, :3].astype(np.int64)


def _fallback_index(i: int, count: int) -> int:
    return (i * 7) % count


def seed_centroids(sample: np.ndarray, k: int) -> np.ndarray:
    """Deterministic k-means++ style seeding.

    Each new centroid is picked by walking the cumulative nearest-centroid
    distances to an offset derived from the sample size and k, so the choice
    is weighted by squared distance without using a random source.
    """
    count = len(sample)

    if count <= k:
        # Not enough pixels to choose from; reuse them in order
        return np.array([sample[i % count] for i in range(k)], dtype=np.float64)

    seed = count + k
    centroids = [sample[seed % count]]

    for i in range(1, k):
        distances = squared_distances(sample, np.array(centroids)).min(axis=1)
        total = int(distances.sum())

        if total == 0:
            # Every sampled pixel already coincides with a centroid
            centroids.append(sample[_fallback_index(i, count)])
            continue

        target = (seed * (i + 1)) % total
        cumulative = np.cumsum(distances)
        chosen = int(np.searchsorted(cumulative, target, side='right'))
        centroids.append(sample[chosen])

    return np.array(centroids, dtype=np.float64)


def kmeans(sample: np.ndarray, k: int, iterations: int = 20) -> np.ndarray:
    """Lloyd iterations from deterministic seeds; returns float centroids of shape (k, 3)."""
    count = len(sample)
    centroids = seed_centroids(sample, k)

    for _ in range(iterations):
        assignments = nearest_index(sample, centroids)
        counts = np.bincount(assignments, minlength=k)

        new_centroids = np.empty_like(centroids)
        for channel in range(3):
            sums = np.bincount(assignments, weights=sample[:, channel], minlength=k)
            with np.errstate(invalid='ignore', divide='ignore'):
                new_centroids[:, channel] = sums / counts

        # Empty clusters are reseeded from the sample instead of collapsing
        for i in np.flatnonzero(counts == 0):
            new_centroids[i] = sample[_fallback_index(int(i), count)]

        if np.array_equal(new_centroids, centroids):
            break
        centroids = new_centroids

    return centroids


def refine_centroids(centroids: np.ndarray, clustered: np.ndarray, original: np.ndarray) -> np.ndarray:
    """Recompute each centroid from the unsnapped colors of the pixels it won.

    Clustering runs on grid-snapped colors, but the reported palette should
    carry the image's own precision. Clusters that won nothing keep their
    centroid.
    """
    k = len(centroids)
    assignments = nearest_index(clustered, centroids)
    counts = np.bincount(assignments, minlength=k)

    refined = centroids.copy()
    for channel in range(3):
        sums = np.bincount(assignments, weights=original[:, channel], minlength=k)
        won = counts > 0
        refined[won, channel] = sums[won] / counts[won]
    return refined


def _find_distinct_color(used: List[str], rgb: np.ndarray, rng: np.random.Generator,
                         settings: ExtractionSettings) -> str:
    used_rgb = [hex_to_rgb(color) for color in used]

    for _ in range(settings.dedupe_attempts):
        candidate = rgb[int(rng.integers(len(rgb)))]
        if all(color_distance(candidate, other) >= settings.similarity_threshold for other in used_rgb):
            return rgb_to_hex(*candidate)

    # Nothing in the image is far enough away; settle for any unused color
    while True:
        color = rgb_to_hex(*rng.integers(0, 256, size=3))
        if color not in used:
            return color


def ensure_unique_colors(colors: List[str], rgba: np.ndarray, k: int,
                         settings: Optional[ExtractionSettings] = None) -> List[str]:
    """Replace repeated palette entries with distinct colors taken from the image."""
    settings = settings or ExtractionSettings()
    rng = np.random.default_rng([len(rgba), k])
    rgb = rgba[:, :3].astype(np.int64)

    unique = []
    for color in colors:
        if color in unique:
            color = _find_distinct_color(unique, rgb, rng, settings)
        unique.append(color)

    return unique


def assign_bands(pixels, width: int, height: int, palette: List[str]) -> np.ndarray:
    """Classify every pixel against the palette, returning one band index per pixel."""
    if not palette:
        raise InvalidInputError("Palette is empty")

    rgba = as_rgba(pixels, width, height)
    centers = np.array([hex_to_rgb(color) for color in palette], dtype=np.int64)
    return nearest_index(rgba[:, :3], centers).astype(np.int32)


def extract_palette(pixels, width: int, height: int, k: int,
                    settings: Optional[ExtractionSettings] = None) -> PaletteResult:
    """Reduce an RGBA8 image to k representative colors and a per-pixel band map."""
    settings = settings or ExtractionSettings()

    if k <= 0:
        raise InvalidInputError(f"Palette size must be positive, got {k}")

    rgba = as_rgba(pixels, width, height)

    preprocessed = preprocess_pixels(rgba, settings.quantization_level)
    sample = sample_pixels(preprocessed, settings.sample_stride)
    centroids = kmeans(sample, k, settings.iterations)
    centroids = refine_centroids(centroids, sample, sample_pixels(rgba, settings.sample_stride))

    palette = [rgb_to_hex(*centroid) for centroid in centroids]
    palette = ensure_unique_colors(palette, rgba, k, settings)

    band_map = assign_bands(rgba, width, height, palette)

    return PaletteResult(palette=palette, band_map=band_map)
