import numpy as np
from PIL import Image
from typing import Optional, Tuple
from colorstack.errors import InvalidInputError


def load_rgba(image_path: str, max_dimension: Optional[int] = None) -> Tuple[np.ndarray, int, int]:
    """Decode an image file into a flat RGBA8 buffer, top row first.

    Returns (pixels, width, height). When max_dimension is given the image is
    shrunk with LANCZOS resampling so its longer side is at most that many
    pixels; smaller images are left alone.
    """
    try:
        img = Image.open(image_path).convert('RGBA')
    except (OSError, ValueError) as e:
        raise InvalidInputError(f"Could not read image {image_path}: {e}") from e

    if max_dimension is not None and max(img.width, img.height) > max_dimension:
        scale = max_dimension / max(img.width, img.height)
        # Never shrink a side below 2 pixels; the mesh needs a 2x2 grid
        target_w = max(min(img.width, 2), int(round(img.width * scale)))
        target_h = max(min(img.height, 2), int(round(img.height * scale)))
        img = img.resize((target_w, target_h), Image.Resampling.LANCZOS)

    pixels = np.array(img, dtype=np.uint8).reshape(-1)
    return pixels, img.width, img.height
