"""
Tests for TxGraph API.
"""

import inspect
import io
import json

import pytest
from fastapi.testclient import TestClient

from txgraph.main import app
from txgraph.routers import network, nodes, patterns
from txgraph.utils.deadline import Deadline


client = TestClient(app)


@pytest.fixture(autouse=True)
def empty_state():
    """Every test starts without an ingested network."""
    network.state.clear()
    yield
    network.state.clear()


@pytest.fixture
def ingested(sample_data):
    response = client.post("/api/network", json=sample_data)
    assert response.status_code == 200
    return response.json()


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data


def test_ingest_valid_network(ingested):
    assert ingested["success"] is True
    assert ingested["nodeCount"] == 25
    assert ingested["edgeCount"] == 82
    assert len(ingested["snapshotId"]) == 16
    assert ingested["warnings"] == []


def test_ingest_is_deterministic(sample_data, ingested):
    again = client.post("/api/network", json=sample_data).json()
    assert again["snapshotId"] == ingested["snapshotId"]


def test_ingest_rejects_dangling_edge(node, edge):
    response = client.post(
        "/api/network",
        json={"nodes": [node("a")], "edges": [edge("e1", "a", "ghost")]},
    )
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    errors = data["validationErrors"]
    assert errors[0]["code"] == "DanglingEdgeReference"
    assert errors[0]["field"] == "target"
    # the previous snapshot is not replaced
    assert client.get("/api/network").status_code == 404


def test_ingest_reports_self_loop_warning(node, edge):
    response = client.post(
        "/api/network",
        json={"nodes": [node("a")], "edges": [edge("loop", "a", "a")]},
    )
    assert response.status_code == 200
    assert [w["code"] for w in response.json()["warnings"]] == ["SelfLoopWarning"]


@pytest.mark.parametrize(
    "body",
    [{}, {"nodes": []}, {"nodes": "x", "edges": []}, {"nodes": [], "edges": {"id": "e1"}}],
)
def test_ingest_rejects_malformed_payload(ingested, body):
    response = client.post("/api/network", json=body)
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert [e["code"] for e in data["validationErrors"]] == ["InvalidPayload"]
    # the stored sample survives
    metadata = client.get("/api/network").json()["metadata"]
    assert metadata["snapshotId"] == ingested["snapshotId"]
    assert metadata["nodeCount"] == 25


def test_upload_json_file(sample_data):
    payload = io.BytesIO(json.dumps(sample_data).encode("utf-8"))
    response = client.post(
        "/api/network/upload",
        files={"file": ("network.json", payload, "application/json")},
    )
    assert response.status_code == 200
    assert response.json()["edgeCount"] == 82


def test_upload_non_json():
    response = client.post(
        "/api/network/upload",
        files={"file": ("network.csv", io.BytesIO(b"a,b,c"), "text/csv")},
    )
    assert response.status_code == 400
    assert "Only JSON files are allowed" in response.json()["detail"]


def test_upload_malformed_json():
    response = client.post(
        "/api/network/upload",
        files={"file": ("network.json", io.BytesIO(b"{nodes:"), "application/json")},
    )
    assert response.status_code == 400
    assert "Failed to parse JSON" in response.json()["detail"]


@pytest.mark.parametrize(
    "path",
    ["/api/network", "/api/network/stats", "/api/patterns", "/api/network/nodes/user-1"],
)
def test_reads_before_ingest(path):
    assert client.get(path).status_code == 404


def test_get_network(ingested):
    response = client.get("/api/network")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]["nodes"]) == 25
    assert len(body["data"]["edges"]) == 82
    metadata = body["metadata"]
    assert metadata["snapshotId"] == ingested["snapshotId"]
    assert metadata["version"] == "1.0.0"
    assert "density" not in metadata


def test_get_network_filtered(ingested):
    response = client.get(
        "/api/network", params={"nodeTypes": "user", "maxNodes": 3, "includeMetadata": True}
    )
    assert response.status_code == 200
    body = response.json()
    assert [n["id"] for n in body["data"]["nodes"]] == ["user-1", "user-2", "user-3"]
    ids = {n["id"] for n in body["data"]["nodes"]}
    for e in body["data"]["edges"]:
        assert e["source"] in ids and e["target"] in ids
    metadata = body["metadata"]
    assert metadata["nodeCount"] == 3
    assert metadata["nodeTypes"] == {"user": 3}
    assert 0.0 <= metadata["density"] <= 1.0


def test_get_network_rejects_negative_max_nodes(ingested):
    assert client.get("/api/network", params={"maxNodes": -1}).status_code == 422


def test_get_network_blank_node_types_is_no_filter(ingested):
    body = client.get("/api/network", params={"nodeTypes": ",,"}).json()
    assert len(body["data"]["nodes"]) == 25


def test_stats(ingested):
    response = client.get("/api/network/stats", params={"topK": 3})
    assert response.status_code == 200
    stats = response.json()
    assert stats["nodeCount"] == 25
    assert stats["edgeCount"] == 82
    assert stats["density"] == pytest.approx(82 / 300)
    assert [n["nodeId"] for n in stats["topConnected"]] == ["user-1", "user-12", "user-2"]
    assert stats["topConnected"][0]["connections"] == 11
    assert stats["patterns"]["gatherCount"] == 2
    assert stats["patterns"]["scatterCount"] == 2
    assert stats["fraudStats"]["fraudulentTransactions"] == 37
    assert stats["nodeTypes"] == {"merchant": 10, "user": 15}


def test_stats_threshold_override(ingested):
    response = client.get("/api/network/stats", params={"minFanDegree": 8})
    counts = response.json()["patterns"]
    assert counts["gatherCount"] == 0
    assert counts["scatterCount"] == 2


def test_stats_invalid_configuration(ingested):
    response = client.get("/api/network/stats", params={"minFanDegree": 0})
    assert response.status_code == 422
    assert response.json()["error"] == "INVALID_CONFIGURATION"


def test_stats_deadline_exceeded(ingested, monkeypatch):
    def spent():
        deadline = Deadline(0.001)
        deadline._started -= 1.0
        return deadline

    monkeypatch.setattr(network, "new_deadline", spent)
    response = client.get("/api/network/stats")
    assert response.status_code == 503
    assert response.json()["error"] == "DEADLINE_EXCEEDED"


def test_get_patterns(ingested):
    response = client.get("/api/patterns")
    assert response.status_code == 200
    matches = response.json()
    assert {m["centerNodeId"] for m in matches} == {"user-5", "user-9", "user-12", "user-15"}
    for m in matches:
        assert 0.0 <= m["confidence"] <= 1.0
        assert m["fanDegree"] == len(m["counterpartNodeIds"])

    gathers = client.get("/api/patterns", params={"patternType": "gather"}).json()
    assert {m["centerNodeId"] for m in gathers} == {"user-5", "user-9"}


def test_get_patterns_unknown_type(ingested):
    assert client.get("/api/patterns", params={"patternType": "cycle"}).status_code == 400


def test_get_patterns_for_center(ingested):
    response = client.get("/api/patterns/user-5")
    assert response.status_code == 200
    matches = response.json()
    assert len(matches) == 1
    assert matches[0]["patternType"] == "gather"
    assert matches[0]["fanDegree"] == 7
    assert matches[0]["totalVolume"] == pytest.approx(6005.0)


def test_get_patterns_for_quiet_node(ingested):
    assert client.get("/api/patterns/merchant-1").status_code == 404


def test_get_node_details(ingested):
    response = client.get("/api/network/nodes/user-5")
    assert response.status_code == 200
    detail = response.json()
    assert detail["node"]["label"] == "Robert Brown"
    assert detail["inDegree"] == 7
    assert detail["outDegree"] == 3
    assert detail["totalDegree"] == 10
    assert any(
        p["centerNodeId"] == "user-5" and p["patternType"] == "gather"
        for p in detail["patterns"]
    )


def test_get_unknown_node(ingested):
    assert client.get("/api/network/nodes/nobody").status_code == 404


@pytest.mark.parametrize(
    "endpoint",
    [
        network.get_network_stats,
        patterns.get_all_patterns,
        patterns.get_patterns_for_center,
        nodes.get_node_details,
    ],
)
def test_analysis_endpoints_run_off_the_event_loop(endpoint):
    assert not inspect.iscoroutinefunction(endpoint)
