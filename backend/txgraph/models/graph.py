"""
Domain model for the transaction graph.

Nodes and edges are frozen dataclasses. A Graph owns both collections and the
adjacency indices derived from them; nothing mutates a Graph once
graph_builder.build() has returned it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union

import networkx as nx


Scalar = Union[str, int, float, bool]


class NodeKind(str, Enum):
    """Known node kinds. Unknown type strings are kept as plain strings."""
    MERCHANT = "merchant"
    USER = "user"


class EdgeKind(str, Enum):
    """Kinds of money movement."""
    TRANSACTION = "transaction"
    PEER_TO_PEER = "p2p"


class PatternType(str, Enum):
    GATHER = "gather"
    SCATTER = "scatter"


def kind_value(kind: Union[NodeKind, str, None]) -> Optional[str]:
    """Plain string value of a node kind, for comparisons and histograms."""
    if kind is None:
        return None
    if isinstance(kind, Enum):
        return kind.value
    return kind


@dataclass(frozen=True)
class NodeAttributes:
    """Known node fields plus a bounded side-table of extra scalars."""
    score: Optional[float] = None
    category: Optional[str] = None
    status: Optional[str] = None
    account_age: Optional[int] = None
    transaction_count: Optional[int] = None
    transaction_volume: Optional[float] = None
    extras: Tuple[Tuple[str, Scalar], ...] = ()

    def extra(self, key: str) -> Optional[Scalar]:
        for k, v in self.extras:
            if k == key:
                return v
        return None

    def to_dict(self) -> Dict[str, Scalar]:
        data: Dict[str, Scalar] = {}
        if self.score is not None:
            data["value"] = self.score
        if self.category is not None:
            data["category"] = self.category
        if self.status is not None:
            data["status"] = self.status
        if self.account_age is not None:
            data["accountAge"] = self.account_age
        if self.transaction_count is not None:
            data["transactionCount"] = self.transaction_count
        if self.transaction_volume is not None:
            data["transactionVolume"] = self.transaction_volume
        data.update(self.extras)
        return data


@dataclass(frozen=True)
class Node:
    id: str
    label: str
    kind: Union[NodeKind, str, None] = None
    attributes: NodeAttributes = field(default_factory=NodeAttributes)


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    amount: Decimal = Decimal("0")
    weight: float = 1.0
    kind: EdgeKind = EdgeKind.TRANSACTION
    is_fraud: Optional[bool] = None
    label: Optional[str] = None
    extras: Tuple[Tuple[str, Scalar], ...] = ()

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True)
class Labeled:
    """Ground-truth fraud label supplied with the input."""
    is_fraud: bool


@dataclass(frozen=True)
class Inferred:
    """Heuristic anomaly score, only produced when inference is enabled."""
    score: float


FraudLabel = Union[Labeled, Inferred]


@dataclass(frozen=True)
class DegreeProfile:
    in_degree: int = 0
    out_degree: int = 0

    @property
    def total_degree(self) -> int:
        return self.in_degree + self.out_degree


@dataclass(frozen=True)
class PatternMatch:
    """A gather or scatter pattern centered on one node."""
    pattern_type: PatternType
    center_node_id: str
    counterpart_node_ids: Tuple[str, ...]
    total_volume: Decimal
    confidence: float
    edge_ids: Tuple[str, ...] = ()
    labeled_edge_count: int = 0
    inferred_edge_count: int = 0

    @property
    def fan_degree(self) -> int:
        return len(self.counterpart_node_ids)


class Graph:
    """Immutable transaction multigraph.

    Edges are stored in a frozen networkx MultiDiGraph keyed by edge id, which
    gives the outgoing/incoming adjacency indices. Derived values (degree
    profile, density) are cached on first access.
    """

    def __init__(self, nodes: Dict[str, Node], edges: Dict[str, Edge], nx_graph: nx.MultiDiGraph):
        self._nodes = nodes
        self._edges = edges
        self._g = nx.freeze(nx_graph)
        self._cache: Dict[str, object] = {}

    def node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def nodes(self) -> Iterator[Node]:
        """Nodes in input insertion order."""
        return iter(self._nodes.values())

    def edges(self) -> Iterator[Edge]:
        """Edges in input insertion order."""
        return iter(self._edges.values())

    def node_ids(self) -> Tuple[str, ...]:
        return tuple(self._nodes)

    def neighbors_out(self, node_id: str) -> Tuple[str, ...]:
        """Ids of edges leaving node_id."""
        if node_id not in self._g:
            return ()
        return tuple(key for _, _, key in self._g.out_edges(node_id, keys=True))

    def neighbors_in(self, node_id: str) -> Tuple[str, ...]:
        """Ids of edges arriving at node_id."""
        if node_id not in self._g:
            return ()
        return tuple(key for _, _, key in self._g.in_edges(node_id, keys=True))

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def nx_graph(self) -> nx.MultiDiGraph:
        """Frozen networkx view, for read-only graph algorithms."""
        return self._g

    def cached(self, key: str, compute):
        """Return a derived value, computing it once per Graph."""
        try:
            return self._cache[key]
        except KeyError:
            value = compute()
            self._cache[key] = value
            return value

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count()}, edges={self.edge_count()})"
