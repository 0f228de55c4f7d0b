"""Renderable segments, overlap tracking and viewport culling."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from treehighlight.colors import blend_highlights
from treehighlight.definitions import HighlightDefinition
from treehighlight.errors import MalformedCoordinatesError
from treehighlight.node import FamilyNode, NodeId, is_valid_coordinate

logger = logging.getLogger(__name__)


SegmentKey = Tuple[NodeId, NodeId]


def segment_key(node_id_a: NodeId, node_id_b: NodeId) -> SegmentKey:
    """Order-independent key for the edge between two nodes.

    The key is the ordered id pair itself, so ids containing separators
    never collide. Ids of types that do not compare with each other are
    ordered by ``(type name, str(id))``.
    """
    try:
        in_order = node_id_a <= node_id_b
    except TypeError:
        in_order = (type(node_id_a).__name__, str(node_id_a)) <= (
            type(node_id_b).__name__,
            str(node_id_b),
        )
    return (node_id_a, node_id_b) if in_order else (node_id_b, node_id_a)


@dataclass(frozen=True)
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @classmethod
    def around(cls, *points: Tuple[float, float]) -> Bounds:
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), max(xs), min(ys), max(ys))

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            min(self.min_x, other.min_x),
            max(self.max_x, other.max_x),
            min(self.min_y, other.min_y),
            max(self.max_y, other.max_y),
        )

    def intersects(self, other: Bounds) -> bool:
        """Inclusive box overlap test."""
        return not (
            self.max_x < other.min_x
            or self.min_x > other.max_x
            or self.max_y < other.min_y
            or self.min_y > other.max_y
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.max_x, self.min_y, self.max_y)

    def to_dict(self) -> Dict[str, float]:
        return {
            "minX": self.min_x,
            "maxX": self.max_x,
            "minY": self.min_y,
            "maxY": self.max_y,
        }


@dataclass(frozen=True)
class Viewport(Bounds):
    """Visible area of the tree canvas, in layout coordinates."""

    def __post_init__(self) -> None:
        for value in self.as_tuple():
            if not is_valid_coordinate(value):
                raise MalformedCoordinatesError(f"Viewport bound is not a finite number: {value!r}")
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(f"Viewport minimum exceeds maximum: {self.as_tuple()}")

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> Viewport:
        """Build from ``minX``/``maxX``/``minY``/``maxY`` (or snake_case) keys."""

        def pick(camel: str, snake: str) -> float:
            if camel in data:
                return data[camel]
            if snake in data:
                return data[snake]
            raise KeyError(f"Viewport is missing {camel}")

        return cls(
            pick("minX", "min_x"),
            pick("maxX", "max_x"),
            pick("minY", "min_y"),
            pick("maxY", "max_y"),
        )


@dataclass(frozen=True)
class Segment:
    """Edge between a parent (``from_id``) and its child (``to_id``)."""

    from_id: NodeId
    to_id: NodeId
    x1: float
    y1: float
    x2: float
    y2: float
    bounds: Bounds

    @property
    def key(self) -> SegmentKey:
        return segment_key(self.from_id, self.to_id)


def make_segment(parent: FamilyNode, child: FamilyNode) -> Segment:
    """
    Build the segment for a parent/child pair.

    Raises:
        MalformedCoordinatesError: If either node lacks finite coordinates.
    """
    if not (parent.has_coordinates and child.has_coordinates):
        raise MalformedCoordinatesError(
            f"Missing coordinates for connection {parent.id} -> {child.id}"
        )
    return Segment(
        from_id=parent.id,
        to_id=child.id,
        x1=parent.x,
        y1=parent.y,
        x2=child.x,
        y2=child.y,
        bounds=Bounds.around((parent.x, parent.y), (child.x, child.y)),
    )


def try_make_segment(parent: FamilyNode, child: FamilyNode) -> Optional[Segment]:
    """Like :func:`make_segment`, but logs and returns ``None`` for bad coordinates."""
    try:
        return make_segment(parent, child)
    except MalformedCoordinatesError as e:
        logger.warning(f"Skipping segment: {e}")
        return None


@dataclass(frozen=True)
class SegmentHighlight:
    """One highlight's contribution to a segment."""

    id: str
    color: str
    opacity: float
    stroke_width: float
    priority: float

    @classmethod
    def from_definition(cls, definition: HighlightDefinition) -> SegmentHighlight:
        return cls(
            id=definition.id,
            color=definition.style.color,
            opacity=definition.style.opacity,
            stroke_width=definition.style.stroke_width,
            priority=definition.priority,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "color": self.color,
            "opacity": self.opacity,
            "strokeWidth": self.stroke_width,
            "priority": self.priority,
        }


@dataclass
class RenderSegment:
    """A drawable edge and every highlight that covers it.

    Segments with more than one contributing highlight are drawn with colour
    blending by the renderer.
    """

    from_id: NodeId
    to_id: NodeId
    x1: float
    y1: float
    x2: float
    y2: float
    bounds: Bounds
    highlights: List[SegmentHighlight] = field(default_factory=list)

    @property
    def key(self) -> SegmentKey:
        return segment_key(self.from_id, self.to_id)

    @property
    def max_priority(self) -> float:
        return max((h.priority for h in self.highlights), default=0)

    @property
    def is_overlapping(self) -> bool:
        return len(self.highlights) > 1

    @property
    def highlight_ids(self) -> List[str]:
        return [h.id for h in self.highlights]

    def blended_color(self) -> Tuple[int, int, int, float]:
        return blend_highlights(self.highlights)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "bounds": self.bounds.to_dict(),
            "highlights": [h.to_dict() for h in self.highlights],
        }


def build_segment_map(
    paths: Iterable[Tuple[HighlightDefinition, Sequence[Segment]]],
) -> Dict[SegmentKey, RenderSegment]:
    """
    Merge every highlight's segments into one map keyed by :func:`segment_key`.

    The first contributor fixes orientation and coordinates; later
    contributors widen the bounds if theirs differ. A highlight is recorded
    at most once per segment, in definition order.
    """
    segment_map: Dict[SegmentKey, RenderSegment] = {}
    for definition, segments in paths:
        contribution = SegmentHighlight.from_definition(definition)
        for segment in segments:
            key = segment.key
            entry = segment_map.get(key)
            if entry is None:
                entry = RenderSegment(
                    from_id=segment.from_id,
                    to_id=segment.to_id,
                    x1=segment.x1,
                    y1=segment.y1,
                    x2=segment.x2,
                    y2=segment.y2,
                    bounds=segment.bounds,
                )
                segment_map[key] = entry
            elif segment.bounds != entry.bounds:
                entry.bounds = entry.bounds.union(segment.bounds)

            if contribution.id not in entry.highlight_ids:
                entry.highlights.append(contribution)
    return segment_map


def cull_by_viewport(
    segments: Sequence[RenderSegment], viewport: Optional[Bounds]
) -> List[RenderSegment]:
    """
    Keep the segments whose bounding box touches the viewport.

    The test is inclusive on every edge and runs as one vectorised comparison
    over all boxes. Without a viewport nothing is culled.
    """
    segments = list(segments)
    if viewport is None or not segments:
        return segments

    boxes = np.array([s.bounds.as_tuple() for s in segments], dtype=float)
    visible = ~(
        (boxes[:, 1] < viewport.min_x)
        | (boxes[:, 0] > viewport.max_x)
        | (boxes[:, 3] < viewport.min_y)
        | (boxes[:, 2] > viewport.max_y)
    )
    return [segment for segment, keep in zip(segments, visible) if keep]


def sort_by_priority(segments: Iterable[RenderSegment]) -> List[RenderSegment]:
    """Highest max priority first; ties keep their incoming order."""
    return sorted(segments, key=lambda s: s.max_priority, reverse=True)
