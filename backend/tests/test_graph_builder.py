"""
Tests for Graph construction and read-only accessors.
"""

import networkx as nx
import pytest

from txgraph.exceptions import ValidationError
from txgraph.services.graph_builder import build_from_payload, build_subgraph, to_network_data
from txgraph.utils.validator import validate


def test_counts_and_lookup(sample_graph):
    assert sample_graph.node_count() == 25
    assert sample_graph.edge_count() == 82
    assert sample_graph.node("user-5").label == "Robert Brown"
    assert sample_graph.edge("gather-1").target == "user-5"
    assert sample_graph.node("nope") is None
    assert sample_graph.edge("nope") is None


def test_adjacency_split_by_direction(graph_of, node, edge):
    graph = graph_of(
        [node("a"), node("b"), node("c")],
        [edge("ab", "a", "b"), edge("ab2", "a", "b"), edge("cb", "c", "b"), edge("ba", "b", "a")],
    )
    assert set(graph.neighbors_out("a")) == {"ab", "ab2"}
    assert set(graph.neighbors_in("b")) == {"ab", "ab2", "cb"}
    assert graph.neighbors_out("b") == ("ba",)
    assert graph.neighbors_in("c") == ()
    assert graph.neighbors_out("unknown") == ()


def test_parallel_edges_are_kept(graph_of, node, edge):
    """The store is a multigraph: repeated transfers between a pair all count."""
    graph = graph_of([node("a"), node("b")], [edge(f"e{i}", "a", "b") for i in range(4)])
    assert graph.edge_count() == 4
    assert len(graph.neighbors_out("a")) == 4


def test_insertion_order_is_preserved(sample_graph, sample_data):
    assert list(sample_graph.node_ids()) == [n["id"] for n in sample_data["nodes"]]
    assert [e.id for e in sample_graph.edges()] == [e["id"] for e in sample_data["edges"]]


def test_graph_is_frozen(sample_graph):
    with pytest.raises(nx.NetworkXError):
        sample_graph.nx_graph.add_node("intruder")


def test_build_from_payload_rejects_invalid(node, edge):
    with pytest.raises(ValidationError):
        build_from_payload([node("a")], [edge("e1", "a", "b")])


def test_build_subgraph_prunes_edges(sample_graph):
    sub = build_subgraph(sample_graph, ["user-1", "user-2", "user-3"])
    assert sub.node_ids() == ("user-1", "user-2", "user-3")
    assert {e.id for e in sub.edges()} == {"p2p-1", "p2p-2"}
    # parent is untouched
    assert sample_graph.node_count() == 25


def test_to_network_data_revalidates(sample_graph):
    data = to_network_data(sample_graph)
    report = validate(data["nodes"], data["edges"])
    assert report.valid
    assert data["edges"][0]["amount"] == 125.5
    assert data["nodes"][0]["data"]["category"] == "E-commerce"
