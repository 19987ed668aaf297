from dataclasses import dataclass
from typing import List
import numpy as np
from colorstack.config.parser import PaletteConfig
from colorstack.palette.extractor import ExtractionSettings, assign_bands, extract_palette
from colorstack.palette.matcher import match_palette
from colorstack.palette.ordering import detect_background_color, invert_palette, order_for_printing


@dataclass
class PreparedPalette:
    suggested: List[str]  # extracted and ordered for printing
    display: List[str]  # what gets printed; filament colors when matched
    band_map: np.ndarray


def extraction_settings(palette: PaletteConfig) -> ExtractionSettings:
    return ExtractionSettings(
        iterations=palette.iterations,
        sample_stride=palette.sample_stride,
        quantization_level=palette.quantization_level,
    )


def prepare_palette(pixels, width: int, height: int, palette: PaletteConfig) -> PreparedPalette:
    """Extract, order and optionally match a palette, keeping the band map in step."""
    result = extract_palette(pixels, width, height, palette.num_bands, extraction_settings(palette))
    suggested = result.palette
    band_map = result.band_map

    reordered = False
    if palette.auto_base:
        background = detect_background_color(pixels, width, height)
        ordered = order_for_printing(suggested, background)
        reordered = ordered != suggested
        suggested = ordered

    if palette.invert:
        suggested = invert_palette(suggested)
        reordered = True

    if reordered:
        band_map = assign_bands(pixels, width, height, suggested)

    if palette.mode == "filaments":
        display = match_palette(suggested, palette.filaments)
    else:
        display = list(suggested)

    return PreparedPalette(suggested=suggested, display=display, band_map=band_map)
