"""
Network router for TxGraph API: ingestion, filtered queries and statistics.
"""

import json
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from txgraph.config import get_config
from txgraph.models.graph import Graph, PatternMatch
from txgraph.models.schemas import (
    ConnectedNode,
    FraudStats,
    IngestResponse,
    NetworkMetadata,
    NetworkPayload,
    NetworkResponse,
    NetworkStats,
    PatternMatchModel,
    PatternStats,
    ValidationIssueModel,
)
from txgraph.services import filter_engine, metrics, pattern_detector
from txgraph.services.graph_builder import build, to_network_data
from txgraph.services.pattern_detector import DetectorConfig, PatternReport
from txgraph.utils.deadline import Deadline
from txgraph.utils.hasher import get_timestamp, snapshot_id
from txgraph.utils.logger import get_logger
from txgraph.utils.validator import ValidationIssue, validate


router = APIRouter(prefix="/api/network", tags=["network"])
logger = get_logger(__name__)


class AnalysisState:
    """Holds the last ingested snapshot. Graphs are immutable, so readers never lock."""

    def __init__(self):
        self.graph: Optional[Graph] = None
        self.snapshot_id: Optional[str] = None
        self.last_updated: Optional[str] = None

    def update(self, graph: Graph, snapshot: str):
        self.graph = graph
        self.snapshot_id = snapshot
        self.last_updated = get_timestamp()

    def clear(self):
        self.graph = None
        self.snapshot_id = None
        self.last_updated = None


state = AnalysisState()


def require_graph() -> Graph:
    if state.graph is None:
        raise HTTPException(status_code=404, detail="No network data has been ingested yet")
    return state.graph


def new_deadline() -> Optional[Deadline]:
    return Deadline.after(get_config().analysis_budget_seconds)


def detector_config(
    min_fan_degree: Optional[int] = None,
    min_volume: Optional[float] = None,
    use_inferred: Optional[bool] = None,
) -> DetectorConfig:
    return DetectorConfig.from_config(
        min_fan_degree=min_fan_degree,
        min_volume=Decimal(str(min_volume)) if min_volume is not None else None,
        use_inferred=use_inferred,
    )


def match_to_model(match: PatternMatch) -> PatternMatchModel:
    return PatternMatchModel(
        patternType=match.pattern_type.value,
        centerNodeId=match.center_node_id,
        counterpartNodeIds=list(match.counterpart_node_ids),
        fanDegree=match.fan_degree,
        totalVolume=float(match.total_volume),
        confidence=match.confidence,
        edgeIds=list(match.edge_ids),
        labeledEdgeCount=match.labeled_edge_count,
        inferredEdgeCount=match.inferred_edge_count,
    )


def _issue_models(issues: List[ValidationIssue]) -> List[ValidationIssueModel]:
    return [ValidationIssueModel(**issue.to_dict()) for issue in issues]


def _ingest(raw_nodes: Any, raw_edges: Any):
    start_time = time.time()
    report = validate(raw_nodes, raw_edges, max_extra_attributes=get_config().max_extra_attributes)

    if not report.valid:
        logger.warning(
            "Rejected network data: %d error(s), first: %s",
            len(report.errors), report.errors[0].message,
        )
        body = IngestResponse(
            success=False,
            message="Network data validation failed",
            nodeCount=report.node_count,
            edgeCount=report.edge_count,
            validationErrors=_issue_models(report.errors),
            warnings=_issue_models(report.warnings),
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    graph = build(report.validated)
    snapshot = snapshot_id(to_network_data(graph))
    state.update(graph, snapshot)

    logger.info(
        "Ingested snapshot %s: %d nodes, %d edges, %d warning(s) in %.3fs",
        snapshot, graph.node_count(), graph.edge_count(),
        len(report.warnings), time.time() - start_time,
    )
    return IngestResponse(
        success=True,
        message="Network data uploaded successfully",
        nodeCount=graph.node_count(),
        edgeCount=graph.edge_count(),
        snapshotId=snapshot,
        warnings=_issue_models(report.warnings),
    )


@router.post("", response_model=IngestResponse)
async def ingest_network(payload: NetworkPayload):
    """Validate and store a NetworkData snapshot."""
    return _ingest(payload.nodes, payload.edges)


@router.post("/upload", response_model=IngestResponse)
async def upload_network_file(file: UploadFile = File(...)):
    """Upload a NetworkData JSON file."""
    if not file.filename.endswith(".json"):
        raise HTTPException(status_code=400, detail="Only JSON files are allowed")

    try:
        contents = await file.read()
        logger.debug("Processing file: %s, size: %d", file.filename, len(contents))
        document = json.loads(contents.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Failed to parse JSON: {str(e)}")

    if not isinstance(document, dict):
        raise HTTPException(status_code=400, detail="Invalid network data structure")
    return _ingest(document.get("nodes"), document.get("edges"))


@router.get("", response_model=NetworkResponse, response_model_exclude_none=True)
async def get_network(
    nodeTypes: Optional[str] = Query(None, description="Comma-separated node types"),
    maxNodes: int = Query(0, ge=0),
    includeMetadata: bool = False,
) -> NetworkResponse:
    """Return the stored network, optionally filtered by node type and size."""
    graph = require_graph()

    kinds = [t for t in (nodeTypes or "").split(",") if t.strip()] or None
    projected = filter_engine.project(graph, allowed_kinds=kinds, max_nodes=maxNodes)

    metadata = NetworkMetadata(
        lastUpdated=state.last_updated,
        version=get_config().api_version,
        snapshotId=state.snapshot_id,
        nodeCount=projected.node_count(),
        edgeCount=projected.edge_count(),
    )
    if includeMetadata:
        metadata.density = metrics.density(projected)
        metadata.nodeTypes = metrics.node_type_histogram(projected)

    return NetworkResponse(success=True, data=to_network_data(projected), metadata=metadata)


def run_analysis(
    graph: Graph, top_k: int, config: DetectorConfig
) -> Tuple[metrics.NetworkSummary, PatternReport]:
    """Metrics and pattern detection are independent reads; run them side by side."""
    config.validate()
    deadline = new_deadline()
    with ThreadPoolExecutor(max_workers=2) as executor:
        future_summary = executor.submit(metrics.summarize, graph, top_k, deadline)
        future_patterns = executor.submit(pattern_detector.detect, graph, config, deadline)
        return future_summary.result(), future_patterns.result()


@router.get("/stats", response_model=NetworkStats)
def get_network_stats(
    topK: Optional[int] = Query(None, ge=0),
    minFanDegree: Optional[int] = None,
    minVolume: Optional[float] = None,
    useInferred: Optional[bool] = None,
) -> NetworkStats:
    """Aggregate statistics and fraud-pattern counts for the stored network."""
    graph = require_graph()
    top_k = get_config().top_k if topK is None else topK
    summary, patterns = run_analysis(
        graph, top_k, detector_config(minFanDegree, minVolume, useInferred)
    )

    top_nodes = [
        ConnectedNode(nodeId=node_id, label=graph.node(node_id).label, connections=degree)
        for node_id, degree in summary.top_connected
    ]
    volume_by_type: Dict[str, float] = {
        kind: float(volume) for kind, volume in summary.volume_by_kind.items()
    }

    return NetworkStats(
        nodeCount=summary.node_count,
        edgeCount=summary.edge_count,
        density=summary.density,
        avgDegree=round(summary.avg_degree, 4),
        topConnected=top_nodes,
        patterns=PatternStats(
            gatherCount=patterns.gather_count,
            scatterCount=patterns.scatter_count,
            totalFraudVolume=float(patterns.total_fraud_volume),
        ),
        nodeTypes=summary.node_type_histogram,
        edgeTypes=summary.edge_type_histogram,
        isolatedNodes=summary.isolated_nodes,
        selfLoops=summary.self_loops,
        fraudStats=FraudStats(
            totalTransactions=summary.edge_count,
            fraudulentTransactions=summary.fraudulent_edges,
            fraudRate=round(summary.fraud_rate, 4),
        ),
        totalVolume=float(summary.total_volume),
        volumeByType=volume_by_type,
        lastUpdated=state.last_updated,
    )
