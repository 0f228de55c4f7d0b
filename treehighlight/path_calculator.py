"""Ancestor-chain traversal and common-ancestor queries on a family tree.

The calculator walks parent links from a node toward the root and caches the
resulting chains. All queries are read-only over the nodes map it was given;
replacing the map with :meth:`PathCalculator.update_nodes_map` drops the whole
cache.

Example:
    >>> calc = PathCalculator(nodes)
    >>> [n.id for n in calc.calculate_path("child")]
    ['child', 'father', 'grandfather']
    >>> calc.find_lca("cousin_a", "cousin_b")
    'grandfather'
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from treehighlight.lru_cache import LRUCache
from treehighlight.node import NodeId, NodesMap

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 500
DEFAULT_CACHE_SIZE = 100


class TraversalDirection(Enum):
    PATERNAL = "paternal"
    MATERNAL = "maternal"
    # Dual-parent walks are not implemented; BOTH follows the father link.
    BOTH = "both"


@dataclass(frozen=True)
class PathNode:
    """One step of an ancestor chain."""

    id: NodeId
    depth: Optional[int]
    generation: Optional[int]
    name: Optional[str]


AncestorPath = Tuple[PathNode, ...]
CacheKey = Tuple[NodeId, TraversalDirection, int]


@dataclass(frozen=True)
class DualPaths:
    """Full ancestor chains for two nodes and their common ancestor, if any."""

    paths: Tuple[AncestorPath, AncestorPath]
    intersection: Optional[NodeId]


def trim_path_at_node(path: Sequence[PathNode], node_id: NodeId) -> AncestorPath:
    """Return the prefix of ``path`` up to and including ``node_id``.

    The whole path is returned when ``node_id`` does not occur in it.
    """
    for index, node in enumerate(path):
        if node.id == node_id:
            return tuple(path[: index + 1])
    return tuple(path)


class PathCalculator:
    """Ancestor-chain queries with an LRU cache.

    Args:
        nodes_map: Mapping of node id to :class:`FamilyNode`.
        cache_size: Maximum number of cached chains.
        default_max_depth: Hop limit used when a query does not give one.
    """

    def __init__(
        self,
        nodes_map: NodesMap,
        cache_size: int = DEFAULT_CACHE_SIZE,
        default_max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.nodes_map = nodes_map
        self.default_max_depth = default_max_depth
        self.cache: LRUCache[CacheKey, AncestorPath] = LRUCache(cache_size)

    def update_nodes_map(self, new_nodes_map: NodesMap) -> None:
        """Point the calculator at new tree data and invalidate every chain."""
        self.nodes_map = new_nodes_map
        self.cache.clear()

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> dict:
        return {"size": self.cache.size, "max_size": self.cache.max_size}

    # ------------------------------------------------------------------------
    # Single chains
    # ------------------------------------------------------------------------
    def calculate_path(
        self,
        node_id: NodeId,
        direction: Union[TraversalDirection, str] = TraversalDirection.PATERNAL,
        max_depth: Optional[int] = None,
    ) -> AncestorPath:
        """
        Return the ancestor chain of ``node_id``, the node itself first.

        Args:
            node_id: Starting node.
            direction: Which parent link to follow.
            max_depth: Maximum number of nodes to collect. Defaults to
                :attr:`default_max_depth`.

        Returns:
            Tuple of :class:`PathNode`. Empty when ``node_id`` is not in the map.
        """
        direction = TraversalDirection(direction)
        if max_depth is None:
            max_depth = self.default_max_depth
        cache_key = (node_id, direction, max_depth)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        path = self._traverse(node_id, direction, max_depth)
        self.cache.set(cache_key, path)
        logger.debug(
            f"Cached ancestor chain for {node_id} ({direction.value}, "
            f"{len(path)} nodes, cache size {self.cache.size})"
        )
        return path

    def _traverse(
        self, node_id: NodeId, direction: TraversalDirection, max_depth: int
    ) -> AncestorPath:
        path: List[PathNode] = []
        visited = set()
        maternal = direction is TraversalDirection.MATERNAL
        current = node_id
        depth = 0

        while current is not None and depth < max_depth:
            if current in visited:
                logger.warning(f"Circular reference detected at node {current}")
                break
            visited.add(current)

            node = self.nodes_map.get(current)
            if node is None:
                logger.warning(f"Node not found: {current}")
                break

            path.append(
                PathNode(
                    id=node.id,
                    depth=node.depth,
                    generation=node.generation,
                    name=node.name,
                )
            )
            current = node.parent_id(maternal=maternal)
            depth += 1

        if depth >= max_depth:
            logger.warning(f"Max depth reached ({max_depth}) for node {node_id}")

        return tuple(path)

    # ------------------------------------------------------------------------
    # Common ancestors
    # ------------------------------------------------------------------------
    def find_lca(self, node_id_a: NodeId, node_id_b: NodeId) -> Optional[NodeId]:
        """
        Find the common ancestor of two nodes.

        Walks the chain of ``node_id_b`` toward the root and returns the first
        id that also appears in the chain of ``node_id_a``. ``None`` means the
        two nodes share no ancestor in the loaded data.
        """
        if node_id_a is None or node_id_b is None:
            return None
        if node_id_a == node_id_b:
            return node_id_a

        path_a = self.calculate_path(node_id_a)
        path_b = self.calculate_path(node_id_b)
        if not path_a or not path_b:
            return None

        ids_a = {node.id for node in path_a}
        for node in path_b:
            if node.id in ids_a:
                return node.id
        return None

    def find_nway_lca(self, node_ids: Sequence[NodeId]) -> Optional[NodeId]:
        """
        Find a common ancestor shared by every node in ``node_ids``.

        One or two ids are answered directly. For three or more, the ancestor
        sets of all chains are intersected and the member with the smallest
        recorded ``depth`` wins; nodes without a depth rank last.
        """
        if not node_ids:
            return None
        if len(node_ids) == 1:
            return node_ids[0]
        if len(node_ids) == 2:
            return self.find_lca(node_ids[0], node_ids[1])

        paths = [self.calculate_path(node_id) for node_id in node_ids]
        common = {node.id for node in paths[0]}
        for path in paths[1:]:
            common &= {node.id for node in path}
        if not common:
            return None

        # Iterate the first chain so ties resolve deterministically.
        candidates: Iterable[NodeId] = (n.id for n in paths[0] if n.id in common)
        best: Optional[NodeId] = None
        best_depth = math.inf
        for candidate in candidates:
            node = self.nodes_map.get(candidate)
            depth = node.depth if node is not None and node.depth is not None else math.inf
            if best is None or depth < best_depth:
                best, best_depth = candidate, depth
        return best

    def calculate_dual_paths(self, node_id_a: NodeId, node_id_b: NodeId) -> DualPaths:
        """Return both full ancestor chains plus their common ancestor.

        Chains are not trimmed at the common ancestor; use
        :func:`trim_path_at_node` when only the connecting part is wanted.
        """
        lca = self.find_lca(node_id_a, node_id_b)
        return DualPaths(
            paths=(self.calculate_path(node_id_a), self.calculate_path(node_id_b)),
            intersection=lca,
        )
