"""Colour helpers for previewing blended overlap highlights.

The renderer blends overlapping strokes additively on the GPU. These helpers
compute the same result on the CPU for legends, tests and debug output.
"""

import re
from typing import Iterable, Tuple

import numpy as np

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

RGBA = Tuple[int, int, int, float]


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Parse ``#RRGGBB`` (leading ``#`` optional)."""
    match = _HEX_COLOR.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if match is None:
        raise ValueError(f"Not a #RRGGBB colour: {hex_color!r}")
    digits = match.group(1)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> RGBA:
    r, g, b = hex_to_rgb(hex_color)
    return r, g, b, float(alpha)


def rgba_string(rgba: RGBA) -> str:
    r, g, b, a = rgba
    return f"rgba({r}, {g}, {b}, {a})"


def blend_highlights(highlights: Iterable) -> RGBA:
    """
    Additively blend the colours of highlights sharing a segment.

    Each contributor adds its colour scaled by its opacity; channels clip at
    255 and the alpha at 1.0. Objects need ``color`` and ``opacity``.

    Returns:
        ``(r, g, b, alpha)``; fully transparent black when empty.
    """
    highlights = list(highlights)
    if not highlights:
        return 0, 0, 0, 0.0

    colors = np.array([hex_to_rgb(h.color) for h in highlights], dtype=float)
    opacities = np.clip(np.array([h.opacity for h in highlights], dtype=float), 0.0, 1.0)

    rgb = np.clip((colors * opacities[:, None]).sum(axis=0), 0, 255)
    alpha = float(min(opacities.sum(), 1.0))
    r, g, b = (int(round(channel)) for channel in rgb)
    return r, g, b, round(alpha, 4)
