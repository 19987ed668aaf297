from dataclasses import dataclass
from typing import List, Sequence


@dataclass
class LayerChange:
    index: int
    color: str
    start_layer: int  # 1-based print layer where this color begins


def layer_change_schedule(palette: Sequence[str], base_thickness_layers: int,
                          band_thickness_layers: int) -> List[LayerChange]:
    """When to swap filament so each band prints in its palette color."""
    schedule = []
    for index, color in enumerate(palette):
        if index == 0:
            start_layer = 1
        else:
            start_layer = base_thickness_layers + (index - 1) * band_thickness_layers + 1
        schedule.append(LayerChange(index=index, color=color, start_layer=start_layer))
    return schedule


def format_instructions(palette: Sequence[str], base_thickness_layers: int,
                        band_thickness_layers: int, layer_height_mm: float) -> str:
    lines = []
    for change in layer_change_schedule(palette, base_thickness_layers, band_thickness_layers):
        if change.index == 0:
            lines.append(f"Start with {change.color} (base)")
        else:
            z = (change.start_layer - 1) * layer_height_mm
            lines.append(f"Change to {change.color} at layer {change.start_layer} (z = {z:.2f} mm)")
    return "\n".join(lines)
