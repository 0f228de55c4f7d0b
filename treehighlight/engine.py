"""
Highlight engine: pure highlight-state transformers and the render pipeline.

Highlight state is a plain ``{highlight_id: HighlightDefinition}`` mapping
owned by the caller's store. The transformers never mutate it; they return a
new dict (or the same object when the call is rejected). Render data is
recomputed on every call:

1. each definition is turned into segments by its path algorithm,
2. segments shared by several highlights are merged into one entry,
3. entries outside the viewport are culled,
4. entries are ordered by their highest contributing priority.

Malformed definitions, missing nodes and failing filter predicates are
logged and skipped; nothing is raised to the caller.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from treehighlight.config import HighlightConfig
from treehighlight.definitions import HighlightDefinition, HighlightStyle, resolve_definition
from treehighlight.errors import InvalidDefinitionError, MalformedCoordinatesError
from treehighlight.node import NodesMap
from treehighlight.path_algorithms import PathAlgorithms
from treehighlight.path_calculator import PathCalculator
from treehighlight.segments import (
    Bounds,
    RenderSegment,
    SegmentKey,
    Viewport,
    build_segment_map,
    cull_by_viewport,
    sort_by_priority,
)
from treehighlight.stats import HighlightStats

logger = logging.getLogger(__name__)

HighlightState = Mapping[str, HighlightDefinition]
ViewportLike = Union[Bounds, Mapping[str, float], None]


class HighlightEngine:
    """
    Computes render-ready highlight segments for a family-tree view.

    Each tree view (or test) owns its own engine. The ancestor-chain cache of
    :attr:`path_calculator` only lives for one render call: the nodes map is
    owned by the caller and may be edited in place between calls.

    Args:
        config: Defaults for style, priority, cache size and depth limits.
        path_calculator: Optional calculator to share with other code.
    """

    def __init__(
        self,
        config: Optional[HighlightConfig] = None,
        path_calculator: Optional[PathCalculator] = None,
    ):
        self.config = config or HighlightConfig()
        self.path_calculator = path_calculator or PathCalculator(
            {},
            cache_size=self.config.cache_size,
            default_max_depth=self.config.default_max_depth,
        )
        self.algorithms = PathAlgorithms(
            self.path_calculator, subtree_depth_limit=self.config.subtree_depth_limit
        )
        self.default_style = HighlightStyle(
            color=self.config.default_color,
            opacity=self.config.default_opacity,
            stroke_width=self.config.default_stroke_width,
        )

    # ------------------------------------------------------------------------
    # State transformers
    # ------------------------------------------------------------------------
    def add_highlight(
        self, state: HighlightState, definition: Union[HighlightDefinition, Mapping[str, Any]]
    ) -> Dict[str, HighlightDefinition]:
        """Return ``state`` plus ``definition``; invalid input returns ``state``."""
        try:
            resolved = resolve_definition(
                definition,
                default_style=self.default_style,
                default_priority=self.config.default_priority,
            )
        except InvalidDefinitionError as e:
            logger.warning(f"Invalid highlight definition {definition!r}: {e}")
            return state

        new_state = dict(state)
        new_state[resolved.id] = resolved
        return new_state

    def remove_highlight(self, state: HighlightState, highlight_id: str) -> Dict[str, HighlightDefinition]:
        if highlight_id not in state:
            logger.warning(f"Highlight {highlight_id} not found")
            return state
        return {key: value for key, value in state.items() if key != highlight_id}

    def update_highlight(
        self, state: HighlightState, highlight_id: str, updates: Mapping[str, Any]
    ) -> Dict[str, HighlightDefinition]:
        """Apply ``updates`` to one highlight, merging ``style`` key by key."""
        existing = state.get(highlight_id)
        if existing is None:
            logger.warning(f"Highlight {highlight_id} not found")
            return state
        try:
            updated = existing.with_updates(updates)
        except InvalidDefinitionError as e:
            logger.warning(f"Rejected update for highlight {highlight_id}: {e}")
            return state

        new_state = dict(state)
        new_state[highlight_id] = updated
        return new_state

    def clear_all(self) -> Dict[str, HighlightDefinition]:
        return {}

    # ------------------------------------------------------------------------
    # Render pipeline
    # ------------------------------------------------------------------------
    def _bind_nodes(self, nodes_map: NodesMap) -> None:
        # The caller may edit the map in place between calls.
        self.path_calculator.update_nodes_map(nodes_map)

    def _resolve_viewport(self, viewport: ViewportLike) -> Optional[Bounds]:
        if viewport is None or isinstance(viewport, Bounds):
            return viewport
        try:
            return Viewport.from_dict(viewport)
        except (KeyError, ValueError, MalformedCoordinatesError) as e:
            logger.warning(f"Ignoring malformed viewport {viewport!r}: {e}")
            return None

    def _collect_segments(self, state: HighlightState, nodes_map: NodesMap) -> Dict[SegmentKey, RenderSegment]:
        self._bind_nodes(nodes_map)
        paths = []
        for definition in state.values():
            if not isinstance(definition, HighlightDefinition):
                logger.warning(f"Skipping non-definition state entry: {definition!r}")
                continue
            paths.append((definition, self.algorithms.segments_for(definition, nodes_map)))
        return build_segment_map(paths)

    def get_render_data(
        self, state: HighlightState, nodes_map: NodesMap, viewport: ViewportLike = None
    ) -> List[RenderSegment]:
        """
        Render segments for every highlight in ``state``.

        Args:
            state: Highlight definitions keyed by id.
            nodes_map: Tree nodes keyed by id (read only).
            viewport: Visible bounds; ``None`` disables culling. A mapping
                with ``minX``/``maxX``/``minY``/``maxY`` is accepted too.

        Returns:
            Visible segments, highest priority first.
        """
        if not state:
            return []
        segment_map = self._collect_segments(state, nodes_map)
        visible = cull_by_viewport(list(segment_map.values()), self._resolve_viewport(viewport))
        return sort_by_priority(visible)

    def get_stats(
        self, state: HighlightState, nodes_map: NodesMap, viewport: ViewportLike = None
    ) -> HighlightStats:
        """Counts of highlights, segments and overlaps for debugging."""
        if not state:
            return HighlightStats()
        segment_map = self._collect_segments(state, nodes_map)
        visible = cull_by_viewport(list(segment_map.values()), self._resolve_viewport(viewport))
        return HighlightStats.from_segments(
            highlight_count=len(state),
            total_segment_count=len(segment_map),
            visible=visible,
        )
