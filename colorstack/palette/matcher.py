from typing import List, Optional, Sequence
from colorstack.palette.colors import color_distance, hex_to_rgb


def match_palette(suggested: Sequence[str], available: Optional[Sequence[str]]) -> List[str]:
    """Map each suggested color onto an available one, avoiding reuse where possible.

    Candidate pairs are claimed greedily from the globally closest pair
    upward, so two suggested colors only share an available color when there
    are fewer available colors than suggested ones.
    """
    if not available:
        return list(suggested)

    available_rgb = [hex_to_rgb(color) for color in available]

    matches = []
    for suggested_index, color in enumerate(suggested):
        suggested_rgb = hex_to_rgb(color)
        for available_index, candidate in enumerate(available_rgb):
            distance = color_distance(suggested_rgb, candidate)
            matches.append((distance, suggested_index, available_index))

    # Stable sort keeps suggested-major order among equal distances
    matches.sort(key=lambda match: match[0])

    matched: List[Optional[str]] = [None] * len(suggested)
    used_suggested = set()
    used_available = set()

    for _, suggested_index, available_index in matches:
        if suggested_index in used_suggested or available_index in used_available:
            continue
        matched[suggested_index] = available[available_index]
        used_suggested.add(suggested_index)
        used_available.add(available_index)

    # Fewer available colors than suggested: fill the gaps
    for i, color in enumerate(matched):
        if color is not None:
            continue
        for j, candidate in enumerate(available):
            if j not in used_available:
                matched[i] = candidate
                used_available.add(j)
                break
        else:
            matched[i] = available[0]

    return matched
