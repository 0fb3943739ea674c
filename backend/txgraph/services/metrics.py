"""
Network metrics for TxGraph: density, degree profile, most connected nodes.
"""

import heapq
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from txgraph.config import get_config
from txgraph.exceptions import InvalidConfiguration
from txgraph.models.graph import DegreeProfile, Edge, Graph, kind_value
from txgraph.utils.deadline import Deadline, checked
from txgraph.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class NetworkSummary:
    node_count: int
    edge_count: int
    density: float
    avg_degree: float
    node_type_histogram: Dict[str, int]
    edge_type_histogram: Dict[str, int]
    isolated_nodes: int
    self_loops: int
    fraudulent_edges: int
    fraud_rate: float
    total_volume: Decimal
    volume_by_kind: Dict[str, Decimal]
    top_connected: List[Tuple[str, int]] = field(default_factory=list)


def density(graph: Graph) -> float:
    """
    Edge count over the undirected simple-graph maximum N(N-1)/2.

    This is the figure the dashboard has always shown. It applies an
    undirected denominator to a directed multigraph, so a dense multigraph can
    score above 1.
    """
    def compute() -> float:
        n = graph.node_count()
        if n <= 1:
            return 0.0
        return graph.edge_count() / (n * (n - 1) / 2)

    return graph.cached("density", compute)


def _count_degrees(edges: Sequence[Edge]) -> Tuple[Counter, Counter]:
    out_counts: Counter = Counter()
    in_counts: Counter = Counter()
    for edge in edges:
        out_counts[edge.source] += 1
        in_counts[edge.target] += 1
    return out_counts, in_counts


def _shard(items: Sequence[Edge], workers: int) -> List[Sequence[Edge]]:
    size = -(-len(items) // workers)
    return [items[i:i + size] for i in range(0, len(items), size)]


def degree_profile(graph: Graph, workers: Optional[int] = None) -> Dict[str, DegreeProfile]:
    """
    Per-node in/out/total degree, computed once per Graph.

    Above the configured edge threshold the edges are split into shards whose
    partial counts are summed, since addition is order independent.
    """
    def compute() -> Dict[str, DegreeProfile]:
        edges = list(graph.edges())
        threshold = get_config().parallel_degree_threshold
        n_workers = workers or 4

        if len(edges) > threshold and n_workers > 1:
            shards = _shard(edges, n_workers)
            logger.debug("Counting degrees over %d shards", len(shards))
            out_counts: Counter = Counter()
            in_counts: Counter = Counter()
            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                for part_out, part_in in executor.map(_count_degrees, shards):
                    out_counts.update(part_out)
                    in_counts.update(part_in)
        else:
            out_counts, in_counts = _count_degrees(edges)

        return {
            node_id: DegreeProfile(in_degree=in_counts[node_id], out_degree=out_counts[node_id])
            for node_id in graph.node_ids()
        }

    return graph.cached("degree_profile", compute)


def top_connected(
    graph: Graph, k: int, deadline: Optional[Deadline] = None
) -> List[Tuple[str, int]]:
    """
    The k nodes with the highest total degree, ties broken by ascending id.
    Uses a bounded heap, O(V log k).
    """
    if k < 0:
        raise InvalidConfiguration("k must not be negative", parameter="k")
    if k == 0:
        return []

    profiles = degree_profile(graph)
    items = checked(
        ((node_id, profile.total_degree) for node_id, profile in profiles.items()),
        deadline,
        stage="top_connected",
    )
    return heapq.nsmallest(k, items, key=lambda item: (-item[1], item[0]))


def average_degree(graph: Graph) -> float:
    n = graph.node_count()
    if n == 0:
        return 0.0
    return 2 * graph.edge_count() / n


def node_type_histogram(graph: Graph) -> Dict[str, int]:
    counts: Counter = Counter(kind_value(node.kind) or "default" for node in graph.nodes())
    return dict(counts)


def summarize(
    graph: Graph, top_k: Optional[int] = None, deadline: Optional[Deadline] = None
) -> NetworkSummary:
    """Aggregate statistics for the stats endpoint."""
    if top_k is None:
        top_k = get_config().top_k

    profiles = degree_profile(graph)
    isolated = sum(1 for profile in profiles.values() if profile.total_degree == 0)

    edge_kinds: Counter = Counter()
    volume_by_kind: Dict[str, Decimal] = {}
    total_volume = Decimal("0")
    fraudulent = 0
    self_loops = 0
    for edge in checked(graph.edges(), deadline, stage="summarize"):
        edge_kinds[edge.kind.value] += 1
        volume_by_kind[edge.kind.value] = volume_by_kind.get(edge.kind.value, Decimal("0")) + edge.amount
        total_volume += edge.amount
        if edge.is_fraud:
            fraudulent += 1
        if edge.is_self_loop:
            self_loops += 1

    edge_count = graph.edge_count()
    return NetworkSummary(
        node_count=graph.node_count(),
        edge_count=edge_count,
        density=density(graph),
        avg_degree=average_degree(graph),
        node_type_histogram=node_type_histogram(graph),
        edge_type_histogram=dict(edge_kinds),
        isolated_nodes=isolated,
        self_loops=self_loops,
        fraudulent_edges=fraudulent,
        fraud_rate=fraudulent / edge_count if edge_count else 0.0,
        total_volume=total_volume,
        volume_by_kind=volume_by_kind,
        top_connected=top_connected(graph, top_k, deadline),
    )
