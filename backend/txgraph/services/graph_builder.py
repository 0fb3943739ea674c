"""
Graph building utilities for TxGraph.
"""

from typing import Any, Dict, Iterable, Optional

import networkx as nx

from txgraph.models.graph import Edge, Graph, Node, kind_value
from txgraph.utils.logger import get_logger
from txgraph.utils.validator import ValidatedInput, ensure_valid, validate


logger = get_logger(__name__)


def build(validated: ValidatedInput) -> Graph:
    """
    Build an immutable Graph from validated input.
    One linear pass over nodes and one over edges; adjacency comes from the
    MultiDiGraph keyed by edge id.
    """
    G = nx.MultiDiGraph()
    nodes: Dict[str, Node] = {}
    edges: Dict[str, Edge] = {}

    for node in validated.nodes:
        nodes[node.id] = node
        G.add_node(node.id)

    for edge in validated.edges:
        edges[edge.id] = edge
        G.add_edge(edge.source, edge.target, key=edge.id)

    graph = Graph(nodes, edges, G)
    logger.debug("Built %r", graph)
    return graph


def build_subgraph(graph: Graph, node_ids: Iterable[str]) -> Graph:
    """
    Build a Graph restricted to node_ids (kept in the parent's order), dropping
    every edge with an endpoint outside the set.
    """
    keep = set(node_ids)
    nodes = tuple(node for node in graph.nodes() if node.id in keep)
    edges = tuple(
        edge for edge in graph.edges() if edge.source in keep and edge.target in keep
    )
    return build(ValidatedInput(nodes=nodes, edges=edges))


def build_from_payload(
    raw_nodes: Any, raw_edges: Any, max_extra_attributes: Optional[int] = None
) -> Graph:
    """Validate raw records and build a Graph, raising ValidationError on bad input."""
    report = validate(raw_nodes, raw_edges, max_extra_attributes=max_extra_attributes)
    return build(ensure_valid(report))


def to_network_data(graph: Graph) -> Dict[str, Any]:
    """Serialize a Graph back to the NetworkData wire shape."""
    nodes = []
    for node in graph.nodes():
        item: Dict[str, Any] = {"id": node.id, "label": node.label}
        if node.kind is not None:
            item["type"] = kind_value(node.kind)
        data = node.attributes.to_dict()
        if data:
            item["data"] = data
        nodes.append(item)

    edges = []
    for edge in graph.edges():
        item = {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "amount": float(edge.amount),
            "weight": edge.weight,
            "type": edge.kind.value,
        }
        if edge.label is not None:
            item["label"] = edge.label
        if edge.is_fraud is not None:
            item["isFraud"] = edge.is_fraud
        if edge.extras:
            item["data"] = dict(edge.extras)
        edges.append(item)

    return {"nodes": nodes, "edges": edges}
