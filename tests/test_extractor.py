import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import rgba_images, solid_image
from colorstack.errors import InvalidInputError
from colorstack.palette.colors import hex_to_rgb
from colorstack.palette.extractor import (
    ExtractionSettings,
    assign_bands,
    extract_palette,
    kmeans,
    preprocess_pixels,
    sample_pixels,
    seed_centroids,
)


def stripes(colors, run):
    """One row per color, `run` pixels wide."""
    rows = [[list(c) + [255]] * run for c in colors]
    return np.array(rows, dtype=np.uint8).reshape(-1), run, len(colors)


# ========== Preprocessing and sampling ==========

class TestPreprocess:

    def test_snaps_to_grid_rounding_half_up(self):
        rgba = np.array([[15, 16, 250, 7]], dtype=np.uint8)
        result = preprocess_pixels(rgba, 32)
        assert result.tolist() == [[0, 32, 255, 7]]

    def test_does_not_modify_input(self):
        rgba = np.array([[15, 16, 250, 7]], dtype=np.uint8)
        preprocess_pixels(rgba, 32)
        assert rgba.tolist() == [[15, 16, 250, 7]]

    def test_sample_takes_every_fourth_pixel(self):
        rgba = np.arange(40, dtype=np.uint8).reshape(10, 4)
        sample = sample_pixels(rgba, 4)
        assert sample.tolist() == [[0, 1, 2], [16, 17, 18], [32, 33, 34]]


# ========== Seeding and clustering ==========

class TestSeeding:

    def test_first_centroid_is_deterministic(self):
        sample = np.array([[0, 0, 0], [255, 255, 255], [0, 0, 0], [255, 255, 255]])
        centroids = seed_centroids(sample, 2)
        # seed = 4 + 2, first index = 6 % 4
        assert centroids[0].tolist() == [0, 0, 0]
        assert centroids[1].tolist() == [255, 255, 255]

    def test_few_pixels_are_cycled_to_k(self):
        sample = np.array([[10, 20, 30], [40, 50, 60]])
        centroids = seed_centroids(sample, 5)
        assert len(centroids) == 5
        assert centroids[2].tolist() == [10, 20, 30]

    def test_seeds_pick_distinct_colors_when_available(self):
        sample = np.array([[255, 0, 0]] * 5 + [[0, 255, 0]] * 5 + [[0, 0, 255]] * 5)
        centroids = seed_centroids(sample, 3)
        assert len({tuple(c) for c in centroids.tolist()}) == 3

    def test_single_color_falls_back_to_sample(self):
        sample = np.array([[9, 9, 9]] * 10)
        centroids = seed_centroids(sample, 3)
        assert centroids.tolist() == [[9, 9, 9]] * 3

    def test_kmeans_converges_to_cluster_means(self):
        sample = np.array([[0, 0, 0], [2, 2, 2], [250, 250, 250], [252, 252, 252]] * 3)
        centroids = kmeans(sample, 2, 20)
        assert sorted(c[0] for c in centroids.tolist()) == [1.0, 251.0]

    def test_empty_cluster_is_reseeded_from_sample(self):
        # Six seeds over four points: the two repeats win no pixels
        sample = np.array([[0, 0, 0], [60, 0, 0], [0, 120, 0], [0, 0, 180]])
        centroids = kmeans(sample, 6, 20)

        assert not np.isnan(centroids).any()
        assert centroids[:4].tolist() == sample.tolist()
        # Cluster i is reseeded to sample[(i * 7) % 4]
        assert centroids[4].tolist() == [0, 0, 0]
        assert centroids[5].tolist() == [0, 0, 180]


# ========== Full extraction ==========

class TestExtractPalette:

    def test_solid_red_square(self, red_square):
        result = extract_palette(red_square, 2, 2, 2)

        assert len(result.palette) == 2
        assert result.palette[0] == "#ff0000"
        assert result.palette[1] != result.palette[0]
        assert result.band_map.tolist() == [0, 0, 0, 0]

    def test_black_and_white_halves(self):
        pixels = np.zeros((4, 4, 4), dtype=np.uint8)
        pixels[2:, :, :3] = 255
        pixels[:, :, 3] = 255

        result = extract_palette(pixels.reshape(-1), 4, 4, 2)

        assert set(result.palette) == {"#000000", "#ffffff"}
        colors = [result.palette[b] for b in result.band_map]
        assert colors[:8] == ["#000000"] * 8
        assert colors[8:] == ["#ffffff"] * 8

    def test_three_pure_colors_are_recovered(self):
        pixels, width, height = stripes([(255, 0, 0), (0, 255, 0), (0, 0, 255)], 12)
        result = extract_palette(pixels, width, height, 3)
        assert sorted(result.palette) == ["#0000ff", "#00ff00", "#ff0000"]

    def test_band_map_uses_original_pixels(self):
        # Clustering sees grid-snapped colors; classification sees the originals
        pixels, width, height = stripes([(20, 20, 20), (200, 200, 200)], 8)
        result = extract_palette(pixels, width, height, 2)
        assert len(set(result.band_map.tolist())) == 2

    def test_reported_palette_keeps_full_precision(self):
        pixels, width, height = stripes([(30, 60, 200), (255, 255, 255)], 8)
        result = extract_palette(pixels, width, height, 2)
        assert sorted(result.palette) == ["#1e3cc8", "#ffffff"]

    def test_accepts_bytes(self, red_square):
        result = extract_palette(bytes(red_square), 2, 2, 2)
        assert result.palette[0] == "#ff0000"

    def test_custom_settings(self):
        pixels, width, height = stripes([(0, 0, 0), (255, 255, 255)], 6)
        settings_ = ExtractionSettings(iterations=1, sample_stride=1)
        result = extract_palette(pixels, width, height, 2, settings_)
        assert set(result.palette) == {"#000000", "#ffffff"}

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_k_rejected(self, red_square, k):
        with pytest.raises(InvalidInputError):
            extract_palette(red_square, 2, 2, k)

    def test_empty_buffer_rejected(self):
        with pytest.raises(InvalidInputError):
            extract_palette(b"", 0, 0, 2)
        with pytest.raises(InvalidInputError):
            extract_palette(np.array([], dtype=np.uint8), 1, 1, 2)

    def test_wrong_length_rejected(self, red_square):
        with pytest.raises(InvalidInputError):
            extract_palette(red_square[:-1], 2, 2, 2)

    def test_fractional_samples_rejected(self):
        pixels = np.array([12.9, 0, 0, 255], dtype=np.float64)
        with pytest.raises(InvalidInputError, match="whole numbers"):
            extract_palette(pixels, 1, 1, 1)

    def test_whole_valued_floats_accepted(self):
        pixels = np.array([12.0, 0, 0, 255], dtype=np.float64)
        result = extract_palette(pixels, 1, 1, 1)
        assert result.palette == ["#0c0000"]

    def test_k_above_distinct_colors_still_returns_k(self):
        pixels = solid_image(3, 3, (10, 200, 30))
        result = extract_palette(pixels, 3, 3, 6)
        assert len(result.palette) == 6
        assert len(set(result.palette)) == 6

    def test_input_not_mutated(self, framed_image):
        pixels, width, height = framed_image
        before = pixels.copy()
        extract_palette(pixels, width, height, 3)
        assert np.array_equal(pixels, before)


class TestAssignBands:

    def test_nearest_palette_entry(self):
        pixels = np.array([250, 5, 5, 255, 5, 5, 250, 255], dtype=np.uint8)
        bands = assign_bands(pixels, 2, 1, ["#0000ff", "#ff0000"])
        assert bands.tolist() == [1, 0]

    def test_empty_palette_rejected(self, red_square):
        with pytest.raises(InvalidInputError):
            assign_bands(red_square, 2, 2, [])


# ========== Properties ==========

@settings(max_examples=60, deadline=None)
@given(image=rgba_images(), k=st.integers(1, 6))
def test_extraction_is_deterministic(image, k):
    pixels, width, height = image
    first = extract_palette(pixels, width, height, k)
    second = extract_palette(pixels.copy(), width, height, k)

    assert first.palette == second.palette
    assert first.band_map.tobytes() == second.band_map.tobytes()


@settings(max_examples=60, deadline=None)
@given(image=rgba_images(), k=st.integers(1, 6))
def test_band_map_covers_every_pixel(image, k):
    pixels, width, height = image
    result = extract_palette(pixels, width, height, k)

    assert len(result.palette) == k
    assert result.band_map.shape == (width * height,)
    assert result.band_map.min() >= 0
    assert result.band_map.max() < k


@settings(max_examples=60, deadline=None)
@given(image=rgba_images(), k=st.integers(2, 6))
def test_palette_entries_are_unique(image, k):
    pixels, width, height = image
    result = extract_palette(pixels, width, height, k)

    assert len(set(result.palette)) == len(result.palette)
    for color in result.palette:
        assert all(0 <= c <= 255 for c in hex_to_rgb(color))
