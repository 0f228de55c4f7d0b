"""Highlight definitions: what to highlight and how it should look."""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from treehighlight.errors import InvalidDefinitionError
from treehighlight.node import FamilyNode, NodeId

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#A13333"
DEFAULT_OPACITY = 0.6
DEFAULT_STROKE_WIDTH = 4

NodePredicate = Callable[[FamilyNode, FamilyNode], bool]

_ID_ALPHABET = string.digits + string.ascii_lowercase

# Attribute names accepted in updates, mapped to the keys used by to_dict().
_UPDATE_KEYS = {
    "from_id": "from",
    "to_id": "to",
    "node_id": "nodeId",
    "root_id": "rootId",
    "max_depth": "maxDepth",
    "created_at": "createdAt",
}


class HighlightType(Enum):
    NODE_TO_NODE = "node_to_node"
    CONNECTION_ONLY = "connection_only"
    ANCESTRY_PATH = "ancestry_path"
    TREE_WIDE = "tree_wide"
    SUBTREE = "subtree"


# Fields that must be set for each type.
REQUIRED_FIELDS: Dict[HighlightType, tuple] = {
    HighlightType.NODE_TO_NODE: ("from_id", "to_id"),
    HighlightType.CONNECTION_ONLY: ("from_id", "to_id"),
    HighlightType.ANCESTRY_PATH: ("node_id",),
    HighlightType.TREE_WIDE: (),
    HighlightType.SUBTREE: ("root_id",),
}


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_highlight_id() -> str:
    """Return an id of the form ``highlight_{epoch_ms}_{9 base36 chars}``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"highlight_{now_ms()}_{suffix}"


@dataclass(frozen=True)
class HighlightStyle:
    color: str = DEFAULT_COLOR
    opacity: float = DEFAULT_OPACITY
    stroke_width: float = DEFAULT_STROKE_WIDTH

    def __post_init__(self) -> None:
        if not isinstance(self.color, str) or not self.color:
            raise InvalidDefinitionError(f"style.color must be a string, got {self.color!r}")
        for name in ("opacity", "stroke_width"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidDefinitionError(f"style.{name} must be numeric, got {value!r}")

    @classmethod
    def from_dict(
        cls, data: Optional[Mapping[str, Any]], defaults: Optional[HighlightStyle] = None
    ) -> HighlightStyle:
        """Build a style, taking missing keys from ``defaults``.

        Accepts both ``strokeWidth`` and ``stroke_width``. An empty colour
        string counts as missing.
        """
        if isinstance(data, HighlightStyle):
            return data
        if data is None:
            data = {}
        elif not isinstance(data, Mapping):
            raise InvalidDefinitionError(f"style must be a mapping, got {data!r}")
        base = defaults or cls()
        stroke_width = data.get("stroke_width", data.get("strokeWidth"))
        return cls(
            color=data.get("color") or base.color,
            opacity=data["opacity"] if data.get("opacity") is not None else base.opacity,
            stroke_width=stroke_width if stroke_width is not None else base.stroke_width,
        )

    def merged(self, updates: Optional[Mapping[str, Any]]) -> HighlightStyle:
        """Return a copy with ``updates`` laid over the current values."""
        return HighlightStyle.from_dict(updates, defaults=self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "opacity": self.opacity,
            "strokeWidth": self.stroke_width,
        }


@dataclass(frozen=True)
class HighlightFilter:
    """Edge filter for tree-wide highlights.

    All configured criteria must hold. ``predicate`` receives the child node
    and its father; if it raises, the edge is excluded.
    """

    generation: Optional[int] = None
    spouse_only: bool = False
    predicate: Optional[NodePredicate] = None

    def __post_init__(self) -> None:
        if self.predicate is not None and not callable(self.predicate):
            raise InvalidDefinitionError("filter.predicate must be callable")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional[HighlightFilter]:
        if data is None:
            return None
        if isinstance(data, HighlightFilter):
            return data
        if not isinstance(data, Mapping):
            raise InvalidDefinitionError(f"filter must be a mapping, got {data!r}")
        return cls(
            generation=data.get("generation"),
            spouse_only=bool(data.get("spouse_only", data.get("munasib_only", False))),
            predicate=data.get("predicate"),
        )

    def passes(self, node: FamilyNode, parent: FamilyNode) -> bool:
        if self.generation is not None and node.generation != self.generation:
            return False
        if self.spouse_only and not node.munasib_id:
            return False
        if self.predicate is not None:
            try:
                return bool(self.predicate(node, parent))
            except Exception:
                logger.exception(f"Filter predicate raised for node {node.id}")
                return False
        return True


@dataclass(frozen=True)
class HighlightDefinition:
    """
    One logical highlight request.

    The ``type`` tag decides which of the optional id fields are required;
    this is checked on construction so an instance is always dispatchable.

    Attributes:
        id: Unique highlight id (generated when not given).
        type: Which path algorithm draws this highlight.
        from_id, to_id: Endpoints for NODE_TO_NODE and CONNECTION_ONLY.
        node_id: Start node for ANCESTRY_PATH.
        root_id: Root for SUBTREE.
        max_depth: Optional hop/generation limit (ANCESTRY_PATH, SUBTREE).
        filter: Optional edge filter (TREE_WIDE).
        style: Stroke appearance.
        priority: Higher priorities draw on top.
        created_at: Creation time in epoch milliseconds.
    """

    type: HighlightType
    id: str = field(default_factory=generate_highlight_id)
    from_id: Optional[NodeId] = None
    to_id: Optional[NodeId] = None
    node_id: Optional[NodeId] = None
    root_id: Optional[NodeId] = None
    max_depth: Optional[int] = None
    filter: Optional[HighlightFilter] = None
    style: HighlightStyle = field(default_factory=HighlightStyle)
    priority: int = 0
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self) -> None:
        if not isinstance(self.type, HighlightType):
            try:
                object.__setattr__(self, "type", HighlightType(self.type))
            except ValueError as e:
                raise InvalidDefinitionError(f"Unknown highlight type: {self.type!r}") from e

        if not isinstance(self.id, str) or not self.id:
            raise InvalidDefinitionError(f"Highlight id must be a non-empty string, got {self.id!r}")

        missing = [name for name in REQUIRED_FIELDS[self.type] if getattr(self, name) is None]
        if missing:
            raise InvalidDefinitionError(
                f"{self.type.value} requires {', '.join(missing)}"
            )

        if self.max_depth is not None and (
            isinstance(self.max_depth, bool)
            or not isinstance(self.max_depth, int)
            or self.max_depth < 0
        ):
            raise InvalidDefinitionError(
                f"max_depth must be a non-negative integer, got {self.max_depth!r}"
            )
        if isinstance(self.priority, bool) or not isinstance(self.priority, (int, float)):
            raise InvalidDefinitionError(f"priority must be numeric, got {self.priority!r}")
        if not isinstance(self.style, HighlightStyle):
            raise InvalidDefinitionError("style must be a HighlightStyle")
        if self.filter is not None and not isinstance(self.filter, HighlightFilter):
            raise InvalidDefinitionError("filter must be a HighlightFilter")

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        default_style: Optional[HighlightStyle] = None,
        default_priority: int = 0,
    ) -> HighlightDefinition:
        """
        Build a definition from a raw request.

        Accepts the camelCase keys used by UI callers (``from``, ``to``,
        ``nodeId``, ``rootId``, ``maxDepth``, ``createdAt``) as well as the
        attribute names.

        Raises:
            InvalidDefinitionError: If the type is missing or unknown, or a
                field required by the type is absent.
        """
        if not isinstance(data, Mapping):
            raise InvalidDefinitionError(f"Highlight definition must be a mapping, got {data!r}")
        if not data.get("type"):
            raise InvalidDefinitionError("Highlight definition has no type")

        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        kwargs: Dict[str, Any] = dict(
            type=data["type"],
            from_id=pick("from_id", "from"),
            to_id=pick("to_id", "to"),
            node_id=pick("node_id", "nodeId"),
            root_id=pick("root_id", "rootId"),
            max_depth=pick("max_depth", "maxDepth"),
            filter=HighlightFilter.from_dict(data.get("filter")),
            style=HighlightStyle.from_dict(data.get("style"), defaults=default_style),
            priority=pick("priority") if pick("priority") is not None else default_priority,
        )
        if pick("id"):
            kwargs["id"] = data["id"]
        created_at = pick("created_at", "createdAt")
        if created_at is not None:
            kwargs["created_at"] = created_at
        return cls(**kwargs)

    def with_updates(self, updates: Mapping[str, Any]) -> HighlightDefinition:
        """
        Return a copy with ``updates`` applied.

        ``style`` is merged key by key instead of replaced. ``id`` and
        ``created_at`` are kept. A field set to ``None`` is cleared, whether
        it is named by attribute or by its camelCase key. The result is
        validated like a new definition.

        Raises:
            InvalidDefinitionError: If ``updates`` is not a mapping or the
                result is not a valid definition.
        """
        if not isinstance(updates, Mapping):
            raise InvalidDefinitionError(f"Highlight updates must be a mapping, got {updates!r}")
        merged = self.to_dict()
        for key, value in updates.items():
            if key != "style":
                merged[_UPDATE_KEYS.get(key, key)] = value
        merged["id"] = self.id
        merged["createdAt"] = self.created_at
        merged["style"] = self.style.merged(updates.get("style")).to_dict()
        merged["filter"] = updates.get("filter", self.filter)
        return HighlightDefinition.from_dict(merged, default_priority=self.priority)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "priority": self.priority,
            "createdAt": self.created_at,
            "style": self.style.to_dict(),
        }
        for attr, key in (
            ("from_id", "from"),
            ("to_id", "to"),
            ("node_id", "nodeId"),
            ("root_id", "rootId"),
            ("max_depth", "maxDepth"),
        ):
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        if self.filter is not None:
            data["filter"] = self.filter
        return data


def resolve_definition(
    definition: Any,
    default_style: Optional[HighlightStyle] = None,
    default_priority: int = 0,
) -> HighlightDefinition:
    """Coerce a raw mapping or an existing definition into a validated one."""
    if isinstance(definition, HighlightDefinition):
        return definition
    return HighlightDefinition.from_dict(
        definition, default_style=default_style, default_priority=default_priority
    )


__all__ = [
    "HighlightType",
    "HighlightStyle",
    "HighlightFilter",
    "HighlightDefinition",
    "NodePredicate",
    "generate_highlight_id",
    "resolve_definition",
]
