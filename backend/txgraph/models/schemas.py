"""
Pydantic schemas for the TxGraph API.

Field names follow the camelCase NetworkData wire format used by the dashboard.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class NetworkNode(BaseModel):
    id: str
    label: str
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class NetworkEdge(BaseModel):
    id: str
    source: str
    target: str
    label: Optional[str] = None
    amount: Optional[float] = None
    weight: Optional[float] = None
    type: Optional[str] = None
    isFraud: Optional[bool] = None
    data: Optional[Dict[str, Any]] = None


class NetworkData(BaseModel):
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]


class NetworkPayload(BaseModel):
    """Ingestion body. Kept loose so the validator reports missing or malformed lists."""
    nodes: Any = None
    edges: Any = None


class NetworkMetadata(BaseModel):
    lastUpdated: str
    version: str
    snapshotId: str
    nodeCount: int
    edgeCount: int
    density: Optional[float] = None
    nodeTypes: Optional[Dict[str, int]] = None


class NetworkResponse(BaseModel):
    success: bool
    data: NetworkData
    metadata: NetworkMetadata


class ValidationIssueModel(BaseModel):
    code: str
    message: str
    collection: str
    index: Optional[int] = None
    field: Optional[str] = None
    id: Optional[str] = None


class IngestResponse(BaseModel):
    success: bool
    message: str
    nodeCount: int = 0
    edgeCount: int = 0
    snapshotId: Optional[str] = None
    validationErrors: Optional[List[ValidationIssueModel]] = None
    warnings: List[ValidationIssueModel] = Field(default_factory=list)


class ConnectedNode(BaseModel):
    nodeId: str
    label: str
    connections: int


class PatternStats(BaseModel):
    gatherCount: int
    scatterCount: int
    totalFraudVolume: float


class FraudStats(BaseModel):
    totalTransactions: int
    fraudulentTransactions: int
    fraudRate: float


class NetworkStats(BaseModel):
    nodeCount: int
    edgeCount: int
    density: float
    avgDegree: float
    topConnected: List[ConnectedNode]
    patterns: PatternStats
    nodeTypes: Dict[str, int]
    edgeTypes: Dict[str, int]
    isolatedNodes: int
    selfLoops: int
    fraudStats: FraudStats
    totalVolume: float
    volumeByType: Dict[str, float]
    lastUpdated: str


class PatternMatchModel(BaseModel):
    patternType: str
    centerNodeId: str
    counterpartNodeIds: List[str]
    fanDegree: int
    totalVolume: float
    confidence: float
    edgeIds: List[str]
    labeledEdgeCount: int
    inferredEdgeCount: int


class NodeDetail(BaseModel):
    node: NetworkNode
    inDegree: int
    outDegree: int
    totalDegree: int
    patterns: List[PatternMatchModel]
