import math
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Mapping, Optional

NodeId = Hashable


@dataclass(frozen=True)
class FamilyNode:
    """A person in the family tree, as laid out by the tree view.

    Nodes are owned by the caller's data layer and only read here. ``x`` and
    ``y`` stay ``None`` until the layout has been calculated.
    """

    id: NodeId
    father_id: Optional[NodeId] = None
    mother_id: Optional[NodeId] = None
    x: Optional[float] = None
    y: Optional[float] = None
    generation: Optional[int] = None
    depth: Optional[int] = None
    name: Optional[str] = None
    munasib_id: Optional[NodeId] = None

    def __repr__(self) -> str:
        return f"FamilyNode('{self.id}')"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FamilyNode":
        """Build a node from a raw record, ignoring unknown keys."""
        if "id" not in data or data["id"] is None:
            raise ValueError(f"Node record has no id: {data!r}")
        return cls(
            id=data["id"],
            father_id=data.get("father_id"),
            mother_id=data.get("mother_id"),
            x=data.get("x"),
            y=data.get("y"),
            generation=data.get("generation"),
            depth=data.get("depth"),
            name=data.get("name"),
            munasib_id=data.get("munasib_id"),
        )

    def parent_id(self, maternal: bool = False) -> Optional[NodeId]:
        return self.mother_id if maternal else self.father_id

    @property
    def has_coordinates(self) -> bool:
        return is_valid_coordinate(self.x) and is_valid_coordinate(self.y)


NodesMap = Mapping[NodeId, FamilyNode]


def is_valid_coordinate(value: Any) -> bool:
    """True for finite real numbers; bools and NaN are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def nodes_from_records(records: Iterable[Mapping[str, Any]]) -> Dict[NodeId, FamilyNode]:
    """Index raw node records by id, keeping record order."""
    nodes: Dict[NodeId, FamilyNode] = {}
    for record in records:
        node = FamilyNode.from_dict(record)
        nodes[node.id] = node
    return nodes
