"""The five highlight path algorithms.

Each algorithm turns one :class:`HighlightDefinition` into the list of
parent/child :class:`Segment` objects it covers. A segment with bad
coordinates is skipped with a warning. A highlight whose anchor node is
missing raises :class:`MissingNodeError`, which :class:`PathAlgorithms`
turns into an empty result.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from treehighlight.definitions import HighlightDefinition, HighlightType
from treehighlight.errors import MissingNodeError
from treehighlight.node import FamilyNode, NodeId, NodesMap
from treehighlight.path_calculator import PathCalculator
from treehighlight.segments import Segment, try_make_segment

logger = logging.getLogger(__name__)

SUBTREE_DEPTH_LIMIT = 20


def require_node(nodes_map: NodesMap, node_id: NodeId) -> FamilyNode:
    node = nodes_map.get(node_id)
    if node is None:
        raise MissingNodeError(node_id)
    return node


def _orient(
    node_a: FamilyNode, node_b: FamilyNode
) -> tuple:
    """Return ``(parent, child)`` for two directly linked nodes."""
    if node_a.father_id == node_b.id:
        return node_b, node_a
    return node_a, node_b


def path_ids_to_segments(path_ids: Sequence[NodeId], nodes_map: NodesMap) -> List[Segment]:
    """Turn each adjacent pair of a node-id path into a segment."""
    segments: List[Segment] = []
    for first_id, second_id in zip(path_ids, path_ids[1:]):
        first = nodes_map.get(first_id)
        second = nodes_map.get(second_id)
        if first is None or second is None:
            logger.warning(f"Path references missing node: {first_id} -> {second_id}")
            continue
        segment = try_make_segment(*_orient(first, second))
        if segment is not None:
            segments.append(segment)
    return segments


def node_to_node_path_ids(
    from_id: NodeId, to_id: NodeId, path_calculator: PathCalculator
) -> List[NodeId]:
    """
    Node ids of the tree path ``from_id -> common ancestor -> to_id``.

    Empty when the two share no ancestor.

    Raises:
        MissingNodeError: If either node is not in the calculator's map.
    """
    require_node(path_calculator.nodes_map, from_id)
    require_node(path_calculator.nodes_map, to_id)

    lca = path_calculator.find_lca(from_id, to_id)
    if lca is None:
        logger.warning(f"No common ancestor found for {from_id} and {to_id}")
        return []

    up: List[NodeId] = []
    for node in path_calculator.calculate_path(from_id):
        up.append(node.id)
        if node.id == lca:
            break

    down: List[NodeId] = []
    for node in path_calculator.calculate_path(to_id):
        if node.id == lca:
            break
        down.append(node.id)
    down.reverse()

    return up + down


def calculate_node_to_node(
    definition: HighlightDefinition, nodes_map: NodesMap, path_calculator: PathCalculator
) -> List[Segment]:
    path_ids = node_to_node_path_ids(definition.from_id, definition.to_id, path_calculator)
    if len(path_ids) < 2:
        return []
    return path_ids_to_segments(path_ids, nodes_map)


def calculate_connection(definition: HighlightDefinition, nodes_map: NodesMap) -> List[Segment]:
    from_node = require_node(nodes_map, definition.from_id)
    to_node = require_node(nodes_map, definition.to_id)

    if from_node.father_id != to_node.id and to_node.father_id != from_node.id:
        logger.warning(f"No direct connection between {from_node.id} and {to_node.id}")
        return []

    segment = try_make_segment(*_orient(from_node, to_node))
    return [segment] if segment is not None else []


def calculate_ancestry(definition: HighlightDefinition, nodes_map: NodesMap) -> List[Segment]:
    """
    Segments from ``node_id`` up through its fathers.

    A hop is taken only while ``hops < max_depth``; a ``max_depth`` of
    ``None`` or 0 means no limit. A repeated node stops the walk.
    """
    max_depth = definition.max_depth
    current = require_node(nodes_map, definition.node_id)

    segments: List[Segment] = []
    visited = {current.id}
    depth = 0
    while current.father_id is not None:
        if max_depth and depth >= max_depth:
            break
        parent = nodes_map.get(current.father_id)
        if parent is None:
            break
        if parent.id in visited:
            logger.warning(f"Circular reference detected at node {parent.id}")
            break
        visited.add(parent.id)

        segment = try_make_segment(parent, current)
        if segment is not None:
            segments.append(segment)
        current = parent
        depth += 1
    return segments


def calculate_tree_wide(definition: HighlightDefinition, nodes_map: NodesMap) -> List[Segment]:
    """Every father/child edge in map order that passes the optional filter."""
    segments: List[Segment] = []
    for node in nodes_map.values():
        if node.father_id is None:
            continue
        parent = nodes_map.get(node.father_id)
        if parent is None:
            continue
        if definition.filter is not None and not definition.filter.passes(node, parent):
            continue
        segment = try_make_segment(parent, node)
        if segment is not None:
            segments.append(segment)
    return segments


def build_children_index(nodes_map: NodesMap) -> Dict[NodeId, List[FamilyNode]]:
    """Map each father id to its children, in map order."""
    children: Dict[NodeId, List[FamilyNode]] = {}
    for node in nodes_map.values():
        if node.father_id is not None:
            children.setdefault(node.father_id, []).append(node)
    return children


def calculate_subtree(
    definition: HighlightDefinition,
    nodes_map: NodesMap,
    depth_limit: int = SUBTREE_DEPTH_LIMIT,
) -> List[Segment]:
    """
    Segments below ``root_id``, depth first.

    Every visit checks, in order: the hard ``depth_limit`` (so malformed
    cyclic data always terminates), the caller's ``max_depth``, and the
    visited set. Edges out of a node at depth ``d`` reach generation ``d + 1``.
    """
    require_node(nodes_map, definition.root_id)
    max_depth = definition.max_depth
    children_index = build_children_index(nodes_map)
    segments: List[Segment] = []
    visited = set()

    def traverse(node_id: NodeId, depth: int) -> None:
        if depth >= depth_limit:
            logger.warning(f"Hard depth limit ({depth_limit}) reached at node {node_id}")
            return
        if max_depth is not None and depth >= max_depth:
            return
        if node_id in visited:
            return
        visited.add(node_id)

        node = nodes_map.get(node_id)
        if node is None:
            return

        for child in children_index.get(node_id, ()):
            segment = try_make_segment(node, child)
            if segment is not None:
                segments.append(segment)
            traverse(child.id, depth + 1)

    traverse(definition.root_id, 0)
    return segments


class PathAlgorithms:
    """Dispatch table from highlight type to path algorithm."""

    def __init__(self, path_calculator: PathCalculator, subtree_depth_limit: int = SUBTREE_DEPTH_LIMIT):
        self.path_calculator = path_calculator
        self.subtree_depth_limit = subtree_depth_limit
        self._dispatch: Dict[HighlightType, Callable[[HighlightDefinition, NodesMap], List[Segment]]] = {
            HighlightType.NODE_TO_NODE: lambda d, m: calculate_node_to_node(d, m, self.path_calculator),
            HighlightType.CONNECTION_ONLY: calculate_connection,
            HighlightType.ANCESTRY_PATH: calculate_ancestry,
            HighlightType.TREE_WIDE: calculate_tree_wide,
            HighlightType.SUBTREE: lambda d, m: calculate_subtree(d, m, self.subtree_depth_limit),
        }

    def segments_for(
        self, definition: HighlightDefinition, nodes_map: NodesMap
    ) -> List[Segment]:
        """Segments for one definition; failures yield an empty list."""
        algorithm: Optional[Callable] = self._dispatch.get(definition.type)
        if algorithm is None:
            logger.warning(f"Unknown path type: {definition.type}")
            return []
        try:
            return algorithm(definition, nodes_map)
        except MissingNodeError as e:
            logger.warning(f"Highlight {definition.id} skipped: {e}")
            return []
        except Exception:
            logger.exception(f"Error calculating path for {definition.id}")
            return []
