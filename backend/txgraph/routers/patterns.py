"""
Patterns router for TxGraph API.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from txgraph.models.schemas import PatternMatchModel
from txgraph.services import pattern_detector
import txgraph.routers.network as network_module


router = APIRouter(prefix="/api/patterns", tags=["patterns"])


def _detect(min_fan_degree, min_volume, use_inferred):
    graph = network_module.require_graph()
    config = network_module.detector_config(min_fan_degree, min_volume, use_inferred)
    return pattern_detector.detect(graph, config, network_module.new_deadline())


@router.get("", response_model=List[PatternMatchModel])
def get_all_patterns(
    patternType: Optional[str] = None,
    minFanDegree: Optional[int] = None,
    minVolume: Optional[float] = None,
    useInferred: Optional[bool] = None,
) -> List[PatternMatchModel]:
    """Get all gather and scatter matches for the stored network."""
    if patternType is not None and patternType not in ("gather", "scatter"):
        raise HTTPException(status_code=400, detail=f"Unknown pattern type '{patternType}'")
    report = _detect(minFanDegree, minVolume, useInferred)
    return [
        network_module.match_to_model(match)
        for match in report.matches()
        if patternType is None or match.pattern_type.value == patternType
    ]


@router.get("/{node_id}", response_model=List[PatternMatchModel])
def get_patterns_for_center(
    node_id: str,
    minFanDegree: Optional[int] = None,
    minVolume: Optional[float] = None,
    useInferred: Optional[bool] = None,
) -> List[PatternMatchModel]:
    """Get the matches centered on one node."""
    report = _detect(minFanDegree, minVolume, useInferred)
    matches = [m for m in report.matches() if m.center_node_id == node_id]
    if not matches:
        raise HTTPException(
            status_code=404,
            detail=f"No gather or scatter pattern centered on '{node_id}'",
        )
    return [network_module.match_to_model(match) for match in matches]
