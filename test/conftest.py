import logging

import pytest

from treehighlight.engine import HighlightEngine
from treehighlight.node import FamilyNode, nodes_from_records


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@pytest.fixture
def family_nodes():
    """Three generations: 1 -> (2, 3), 2 -> (4, 5), 3 -> 6."""
    return nodes_from_records(
        [
            {"id": 1, "x": 500, "y": 100, "father_id": None, "generation": 1, "depth": 0},
            {"id": 2, "x": 300, "y": 300, "father_id": 1, "generation": 2, "depth": 1},
            {"id": 3, "x": 700, "y": 300, "father_id": 1, "generation": 2, "depth": 1},
            {"id": 4, "x": 200, "y": 500, "father_id": 2, "generation": 3, "depth": 2},
            {"id": 5, "x": 400, "y": 500, "father_id": 2, "generation": 3, "depth": 2, "munasib_id": 99},
            {"id": 6, "x": 800, "y": 500, "father_id": 3, "generation": 3, "depth": 2},
        ]
    )


def make_chain(length, prefix="g"):
    """Linear paternal chain g0 <- g1 <- ... <- g{length}."""
    nodes = {}
    for i in range(length + 1):
        node_id = f"{prefix}{i}"
        nodes[node_id] = FamilyNode(
            id=node_id,
            father_id=f"{prefix}{i - 1}" if i > 0 else None,
            x=float(i * 10),
            y=float(i * 100),
            generation=i + 1,
            depth=i,
            name=node_id.upper(),
        )
    return nodes


@pytest.fixture
def chain_factory():
    return make_chain


@pytest.fixture
def cyclic_nodes():
    """A.father = B, B.father = A."""
    return {
        "A": FamilyNode(id="A", father_id="B", x=0, y=0),
        "B": FamilyNode(id="B", father_id="A", x=10, y=10),
    }


@pytest.fixture
def engine():
    return HighlightEngine()
