import numpy as np
import pytest
from hypothesis import strategies as st


def solid_image(width, height, rgb):
    """Flat RGBA8 buffer filled with one opaque color."""
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = 255
    return pixels.reshape(-1)


@st.composite
def rgba_images(draw, max_side=6):
    """(pixels, width, height) with a small random palette so colors repeat."""
    width = draw(st.integers(1, max_side))
    height = draw(st.integers(1, max_side))
    colors = draw(st.lists(
        st.tuples(st.integers(0, 255), st.integers(0, 255), st.integers(0, 255)),
        min_size=1, max_size=5,
    ))
    choices = draw(st.lists(st.integers(0, len(colors) - 1),
                            min_size=width * height, max_size=width * height))
    pixels = np.array([list(colors[c]) + [255] for c in choices], dtype=np.uint8).reshape(-1)
    return pixels, width, height


@pytest.fixture
def red_square():
    return solid_image(2, 2, (255, 0, 0))


@pytest.fixture
def framed_image():
    """8x8 white image with a 4x4 red block in the middle."""
    pixels = np.full((8, 8, 4), 255, dtype=np.uint8)
    pixels[2:6, 2:6, 1:3] = 0
    return pixels.reshape(-1), 8, 8
