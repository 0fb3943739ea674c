"""
Type- and size-bounded projections of a Graph.
"""

from typing import Iterable, List, Optional, Union

from txgraph.models.graph import Graph, NodeKind, kind_value
from txgraph.services.graph_builder import build_subgraph


def _normalize_kinds(kinds: Iterable[Union[NodeKind, str]]) -> set:
    return {str(kind_value(kind)).strip().lower() for kind in kinds if kind_value(kind)}


def project(
    graph: Graph,
    allowed_kinds: Optional[Iterable[Union[NodeKind, str]]] = None,
    max_nodes: Optional[int] = None,
) -> Graph:
    """
    Return a new Graph holding only nodes of the allowed kinds, then at most
    max_nodes of them in input order. Edges touching a removed node are
    dropped. A max_nodes of zero or less means no cap.
    """
    node_ids: List[str] = list(graph.node_ids())

    if allowed_kinds is not None:
        allowed = _normalize_kinds(allowed_kinds)
        node_ids = [
            node_id for node_id in node_ids
            if (kind_value(graph.node(node_id).kind) or "").lower() in allowed
        ]

    if max_nodes is not None and 0 < max_nodes < len(node_ids):
        node_ids = node_ids[:max_nodes]

    return build_subgraph(graph, node_ids)
