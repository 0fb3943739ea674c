"""
Nodes router for TxGraph API.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from txgraph.models.graph import kind_value
from txgraph.models.schemas import NetworkNode, NodeDetail
from txgraph.services import metrics, pattern_detector
import txgraph.routers.network as network_module


router = APIRouter(prefix="/api/network/nodes", tags=["nodes"])


@router.get("/{node_id}", response_model=NodeDetail)
def get_node_details(
    node_id: str,
    minFanDegree: Optional[int] = None,
    minVolume: Optional[float] = None,
    useInferred: Optional[bool] = None,
) -> NodeDetail:
    """Get degree profile and pattern roles for a specific node."""
    graph = network_module.require_graph()
    node = graph.node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")

    config = network_module.detector_config(minFanDegree, minVolume, useInferred)
    report = pattern_detector.detect(graph, config, network_module.new_deadline())
    roles = [
        network_module.match_to_model(match)
        for match in report.matches()
        if match.center_node_id == node_id or node_id in match.counterpart_node_ids
    ]

    profile = metrics.degree_profile(graph)[node_id]
    return NodeDetail(
        node=NetworkNode(
            id=node.id,
            label=node.label,
            type=kind_value(node.kind),
            data=node.attributes.to_dict() or None,
        ),
        inDegree=profile.in_degree,
        outDegree=profile.out_degree,
        totalDegree=profile.total_degree,
        patterns=roles,
    )
