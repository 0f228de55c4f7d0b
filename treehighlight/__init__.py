"""Highlight overlays for family-tree diagrams."""

__all__ = [
    "HighlightEngine",
    "HighlightConfig",
    "HighlightDefinition",
    "HighlightFilter",
    "HighlightStyle",
    "HighlightType",
    "HighlightStats",
    "FamilyNode",
    "PathCalculator",
    "RenderSegment",
    "TraversalDirection",
    "Viewport",
    "segment_key",
]


def __getattr__(name):
    if name in {"HighlightEngine"}:
        from .engine import HighlightEngine
        return HighlightEngine
    if name in {"HighlightConfig"}:
        from .config import HighlightConfig
        return HighlightConfig
    if name in {"HighlightDefinition", "HighlightFilter", "HighlightStyle", "HighlightType"}:
        from .definitions import (
            HighlightDefinition,
            HighlightFilter,
            HighlightStyle,
            HighlightType,
        )
        return locals()[name]
    if name in {"HighlightStats"}:
        from .stats import HighlightStats
        return HighlightStats
    if name in {"FamilyNode"}:
        from .node import FamilyNode
        return FamilyNode
    if name in {"PathCalculator", "TraversalDirection"}:
        from .path_calculator import PathCalculator, TraversalDirection
        return locals()[name]
    if name in {"RenderSegment", "Viewport", "segment_key"}:
        from .segments import RenderSegment, Viewport, segment_key
        return locals()[name]
    raise AttributeError(name)
