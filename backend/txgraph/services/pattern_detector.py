"""
Gather / scatter pattern detection for TxGraph.

A gather is many distinct accounts sending suspicious value into one node
(fan-in); a scatter is one node sending suspicious value out to many (fan-out).

An edge takes part in a pattern when it is labeled isFraud=true. Unlabeled
edges are ignored unless the caller turns on `use_inferred`: this fallback
policy scores an unlabeled edge by how far its amount or weight sits above the
counterpart's own average, and counts it once the score reaches
`anomaly_ratio`. The two paths produce different FraudLabel variants
(Labeled vs Inferred) so results can always be traced back to ground truth or
heuristic.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from txgraph.config import Config, get_config
from txgraph.exceptions import InvalidConfiguration
from txgraph.models.graph import (
    Edge,
    FraudLabel,
    Graph,
    Inferred,
    Labeled,
    PatternMatch,
    PatternType,
)
from txgraph.utils.deadline import Deadline, checked
from txgraph.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class DetectorConfig:
    min_fan_degree: int = 5
    min_volume: Decimal = Decimal("0")
    use_inferred: bool = False
    anomaly_ratio: float = 3.0

    @classmethod
    def from_config(cls, config: Optional[Config] = None, **overrides) -> "DetectorConfig":
        config = config or get_config()
        values = {
            "min_fan_degree": config.min_fan_degree,
            "min_volume": config.min_volume,
            "use_inferred": config.use_inferred,
            "anomaly_ratio": config.anomaly_ratio,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """Fail fast on parameters no traversal could honor."""
        if isinstance(self.min_fan_degree, bool) or not isinstance(self.min_fan_degree, int):
            raise InvalidConfiguration("min_fan_degree must be an integer", parameter="min_fan_degree")
        if self.min_fan_degree < 1:
            raise InvalidConfiguration(
                f"min_fan_degree must be at least 1, got {self.min_fan_degree}",
                parameter="min_fan_degree",
            )
        if not isinstance(self.min_volume, Decimal) or not self.min_volume.is_finite() or self.min_volume < 0:
            raise InvalidConfiguration(
                f"min_volume must be a non-negative decimal, got {self.min_volume!r}",
                parameter="min_volume",
            )
        if not self.anomaly_ratio > 0:
            raise InvalidConfiguration(
                f"anomaly_ratio must be positive, got {self.anomaly_ratio}",
                parameter="anomaly_ratio",
            )


@dataclass(frozen=True)
class PatternReport:
    gather: Tuple[PatternMatch, ...]
    scatter: Tuple[PatternMatch, ...]
    total_fraud_volume: Decimal

    @property
    def gather_count(self) -> int:
        return len(self.gather)

    @property
    def scatter_count(self) -> int:
        return len(self.scatter)

    def matches(self) -> Tuple[PatternMatch, ...]:
        return self.gather + self.scatter


def _edge_history(graph: Graph) -> Dict[str, Tuple[float, float]]:
    """Mean amount and mean weight over each node's incident edges."""
    def compute() -> Dict[str, Tuple[float, float]]:
        sums: Dict[str, List[float]] = {}
        for edge in graph.edges():
            ends = (edge.source,) if edge.is_self_loop else (edge.source, edge.target)
            for node_id in ends:
                acc = sums.setdefault(node_id, [0.0, 0.0, 0])
                acc[0] += float(edge.amount)
                acc[1] += edge.weight
                acc[2] += 1
        return {
            node_id: (amount / count, weight / count)
            for node_id, (amount, weight, count) in sums.items()
        }

    return graph.cached("edge_history", compute)


def classify_edge(
    graph: Graph, edge: Edge, counterpart_id: str, config: DetectorConfig
) -> Optional[FraudLabel]:
    """Labeled when the input carries isFraud, Inferred when the fallback is on."""
    if edge.is_fraud is not None:
        return Labeled(edge.is_fraud)
    if not config.use_inferred:
        return None

    mean_amount, mean_weight = _edge_history(graph).get(counterpart_id, (0.0, 0.0))
    amount_ratio = float(edge.amount) / mean_amount if mean_amount > 0 else 0.0
    weight_ratio = edge.weight / mean_weight if mean_weight > 0 else 0.0
    return Inferred(max(amount_ratio, weight_ratio))


def is_participant(label: Optional[FraudLabel], config: DetectorConfig) -> bool:
    if isinstance(label, Labeled):
        return label.is_fraud
    if isinstance(label, Inferred):
        return label.score >= config.anomaly_ratio
    return False


def confidence(fan_degree: int, total_volume: Decimal, config: DetectorConfig) -> float:
    """
    0.5 * f / (f + min_fan_degree) + 0.5 * v / (v + scale), scale = max(min_volume, 1).
    Increases with both fan degree and volume and stays below 1.
    """
    scale = float(max(config.min_volume, Decimal("1")))
    volume = float(total_volume)
    fan_term = fan_degree / (fan_degree + config.min_fan_degree)
    volume_term = volume / (volume + scale)
    return round(0.5 * fan_term + 0.5 * volume_term, 4)


def _detect(
    graph: Graph,
    pattern_type: PatternType,
    config: DetectorConfig,
    deadline: Optional[Deadline],
) -> List[PatternMatch]:
    gather = pattern_type == PatternType.GATHER
    results: List[PatternMatch] = []

    for node_id in checked(graph.node_ids(), deadline, stage=f"{pattern_type.value} detection"):
        edge_ids = graph.neighbors_in(node_id) if gather else graph.neighbors_out(node_id)
        if len(edge_ids) < config.min_fan_degree:
            continue

        counterparts: Dict[str, None] = {}
        participant_edges: List[str] = []
        volume = Decimal("0")
        labeled = inferred = 0

        for edge_id in edge_ids:
            edge = graph.edge(edge_id)
            # a self-loop never widens a fan
            if edge.is_self_loop:
                continue
            counterpart = edge.source if gather else edge.target
            label = classify_edge(graph, edge, counterpart, config)
            if not is_participant(label, config):
                continue
            if isinstance(label, Labeled):
                labeled += 1
            else:
                inferred += 1
            counterparts.setdefault(counterpart, None)
            participant_edges.append(edge_id)
            volume += edge.amount

        fan_degree = len(counterparts)
        if fan_degree < config.min_fan_degree or volume < config.min_volume:
            continue

        results.append(
            PatternMatch(
                pattern_type=pattern_type,
                center_node_id=node_id,
                counterpart_node_ids=tuple(counterparts),
                total_volume=volume,
                confidence=confidence(fan_degree, volume, config),
                edge_ids=tuple(participant_edges),
                labeled_edge_count=labeled,
                inferred_edge_count=inferred,
            )
        )

    return results


def detect_gather(
    graph: Graph, config: Optional[DetectorConfig] = None, deadline: Optional[Deadline] = None
) -> List[PatternMatch]:
    """Nodes receiving suspicious value from at least min_fan_degree distinct sources."""
    config = config or DetectorConfig.from_config()
    config.validate()
    return _detect(graph, PatternType.GATHER, config, deadline)


def detect_scatter(
    graph: Graph, config: Optional[DetectorConfig] = None, deadline: Optional[Deadline] = None
) -> List[PatternMatch]:
    """Nodes sending suspicious value to at least min_fan_degree distinct targets."""
    config = config or DetectorConfig.from_config()
    config.validate()
    return _detect(graph, PatternType.SCATTER, config, deadline)


def detect(
    graph: Graph, config: Optional[DetectorConfig] = None, deadline: Optional[Deadline] = None
) -> PatternReport:
    """Run both passes. A node can be a gather center and a scatter center at once."""
    config = config or DetectorConfig.from_config()
    config.validate()

    gather = _detect(graph, PatternType.GATHER, config, deadline)
    scatter = _detect(graph, PatternType.SCATTER, config, deadline)

    edge_amounts: Dict[str, Decimal] = {}
    for match in gather + scatter:
        for edge_id in match.edge_ids:
            edge_amounts[edge_id] = graph.edge(edge_id).amount

    logger.debug(
        "Detected %d gather and %d scatter patterns over %r",
        len(gather), len(scatter), graph,
    )
    return PatternReport(
        gather=tuple(gather),
        scatter=tuple(scatter),
        total_fraud_volume=sum(edge_amounts.values(), Decimal("0")),
    )
