"""
Shared fixtures for TxGraph tests.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from txgraph.config import reset_config
from txgraph.models.graph import Graph
from txgraph.services.graph_builder import build_from_payload


FIXTURES = Path(__file__).parent / "fixtures"


def make_node(node_id: str, node_type: str = "user", **data) -> Dict[str, Any]:
    record: Dict[str, Any] = {"id": node_id, "label": node_id.title(), "type": node_type}
    if data:
        record["data"] = data
    return record


def make_edge(
    edge_id: str, source: str, target: str, amount: float = 100.0, **fields
) -> Dict[str, Any]:
    record = {"id": edge_id, "source": source, "target": target, "amount": amount}
    record.update(fields)
    return record


@pytest.fixture(autouse=True)
def fresh_config():
    """Each test sees configuration freshly read from the environment."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def node():
    return make_node


@pytest.fixture
def edge():
    return make_edge


@pytest.fixture
def graph_of():
    """Build a Graph from raw node and edge records."""
    def _build(nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]]) -> Graph:
        return build_from_payload(nodes, edges)
    return _build


@pytest.fixture
def sample_data() -> Dict[str, Any]:
    """The dashboard's sample network: 25 nodes, 82 edges."""
    with open(FIXTURES / "sample_network.json") as f:
        return json.load(f)


@pytest.fixture
def sample_graph(sample_data) -> Graph:
    return build_from_payload(sample_data["nodes"], sample_data["edges"])


@pytest.fixture
def star_graph(graph_of) -> Graph:
    """A, B, C, D, E each send one fraudulent payment to F."""
    sources = ["A", "B", "C", "D", "E"]
    nodes = [make_node(n) for n in sources + ["F"]]
    edges = [
        make_edge(f"e-{s}", s, "F", amount=200.0, isFraud=True) for s in sources
    ]
    return graph_of(nodes, edges)
