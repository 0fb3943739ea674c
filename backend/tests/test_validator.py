"""
Tests for network data validation.
"""

from decimal import Decimal

import pytest

from txgraph.exceptions import ValidationError
from txgraph.models.graph import EdgeKind, NodeKind
from txgraph.utils.validator import IssueCode, ensure_valid, parse_money, validate


def codes(issues):
    return [issue.code for issue in issues]


def test_valid_input_is_accepted(node, edge):
    """Unique ids and resolvable endpoints pass with parsed records."""
    report = validate(
        [node("a"), node("b", "merchant")],
        [edge("e1", "a", "b", amount=12.5, isFraud=True, type="transaction")],
    )
    assert report.valid
    assert report.errors == []
    nodes = report.validated.nodes
    edges = report.validated.edges
    assert [n.id for n in nodes] == ["a", "b"]
    assert nodes[1].kind == NodeKind.MERCHANT
    assert edges[0].amount == Decimal("12.5")
    assert edges[0].is_fraud is True
    assert edges[0].kind == EdgeKind.TRANSACTION


def test_sample_data_is_valid(sample_data):
    report = validate(sample_data["nodes"], sample_data["edges"])
    assert report.valid
    assert report.node_count == 25
    assert report.edge_count == 82


def test_duplicate_node_id(node):
    report = validate([node("a"), node("a")], [])
    assert not report.valid
    assert codes(report.errors) == [IssueCode.DUPLICATE_NODE_ID]
    assert report.errors[0].index == 1
    assert report.errors[0].item_id == "a"
    assert report.validated is None


def test_missing_node_fields():
    report = validate([{"label": "no id"}, {"id": "x"}], [])
    assert codes(report.errors) == [IssueCode.MISSING_NODE_FIELD, IssueCode.MISSING_NODE_FIELD]
    assert [issue.field for issue in report.errors] == ["id", "label"]


def test_dangling_edge_reference(node, edge):
    """Both ends are checked against the declared node ids."""
    report = validate([node("a")], [edge("e1", "a", "ghost"), edge("e2", "nobody", "a")])
    assert codes(report.errors) == [
        IssueCode.DANGLING_EDGE_REFERENCE,
        IssueCode.DANGLING_EDGE_REFERENCE,
    ]
    assert [issue.field for issue in report.errors] == ["target", "source"]


def test_duplicate_edge_id(node, edge):
    report = validate([node("a"), node("b")], [edge("e1", "a", "b"), edge("e1", "b", "a")])
    assert codes(report.errors) == [IssueCode.DUPLICATE_EDGE_ID]


def test_missing_edge_fields(node):
    report = validate([node("a")], [{"source": "a", "target": "a"}, {"id": "e2", "target": "a"}])
    assert codes(report.errors) == [IssueCode.MISSING_EDGE_FIELD, IssueCode.MISSING_EDGE_FIELD]
    assert [issue.field for issue in report.errors] == ["id", "source"]


def test_self_loop_is_a_warning(node, edge):
    report = validate([node("a")], [edge("loop", "a", "a")])
    assert report.valid
    assert codes(report.warnings) == [IssueCode.SELF_LOOP]
    assert report.validated.edges[0].is_self_loop


def test_invalid_payload_shape():
    report = validate(None, [])
    assert codes(report.errors) == [IssueCode.INVALID_PAYLOAD]


@pytest.mark.parametrize(
    "fields, bad_field",
    [
        ({"amount": -5}, "amount"),
        ({"amount": "lots"}, "amount"),
        ({"weight": "heavy"}, "weight"),
        ({"type": "wire"}, "type"),
        ({"isFraud": "yes"}, "isFraud"),
        ({"weight": 10**400}, "weight"),
        ({"amount": 10**400}, "amount"),
    ],
)
def test_invalid_edge_values(node, fields, bad_field):
    record = {"id": "e1", "source": "a", "target": "b"}
    record.update(fields)
    report = validate([node("a"), node("b")], [record])
    assert codes(report.errors) == [IssueCode.INVALID_FIELD_VALUE]
    assert report.errors[0].field == bad_field


def test_amount_from_display_label(node):
    """Without an explicit amount the money label is parsed."""
    report = validate(
        [node("a"), node("b")],
        [{"id": "e1", "source": "a", "target": "b", "label": "$1,250.00", "type": "p2p"}],
    )
    edge = report.validated.edges[0]
    assert edge.amount == Decimal("1250.00")
    assert edge.kind == EdgeKind.PEER_TO_PEER


def test_amount_from_edge_data(node):
    report = validate(
        [node("a"), node("b")],
        [{"id": "e1", "source": "a", "target": "b", "label": "coffee", "data": {"amount": 3.5}}],
    )
    assert report.validated.edges[0].amount == Decimal("3.5")


def test_unparseable_label_defaults_amount_to_zero(node):
    report = validate([node("a"), node("b")], [{"id": "e1", "source": "a", "target": "b", "label": "coffee"}])
    assert report.valid
    assert report.validated.edges[0].amount == Decimal("0")


def test_node_attributes_known_and_extra(node):
    report = validate(
        [node("a", value=42, category="Regular User", accountAge=90, region="EU", tags=["x"])],
        [],
    )
    attrs = report.validated.nodes[0].attributes
    assert attrs.score == 42.0
    assert attrs.category == "Regular User"
    assert attrs.account_age == 90
    assert attrs.extra("region") == "EU"
    assert attrs.extra("tags") is None
    assert codes(report.warnings) == [IssueCode.ATTRIBUTE_DROPPED]


def test_extra_attributes_are_bounded(node):
    extras = {f"k{i}": i for i in range(5)}
    report = validate([node("a", **extras)], [], max_extra_attributes=3)
    assert len(report.validated.nodes[0].attributes.extras) == 3
    assert len(report.warnings) == 2


def test_unknown_node_type_is_kept(node):
    report = validate([node("a", "exchange")], [])
    assert report.validated.nodes[0].kind == "exchange"


def test_all_errors_are_reported(node, edge):
    """Validation collects every problem instead of stopping at the first."""
    report = validate(
        [node("a"), node("a"), {"id": "b"}],
        [edge("e1", "a", "zzz"), edge("e1", "a", "a")],
    )
    assert set(codes(report.errors)) == {
        IssueCode.DUPLICATE_NODE_ID,
        IssueCode.MISSING_NODE_FIELD,
        IssueCode.DANGLING_EDGE_REFERENCE,
        IssueCode.DUPLICATE_EDGE_ID,
    }


def test_ensure_valid_raises_with_issues(node):
    report = validate([node("a"), node("a")], [])
    with pytest.raises(ValidationError) as exc_info:
        ensure_valid(report)
    assert exc_info.value.issues[0]["code"] == "DuplicateNodeId"
    assert exc_info.value.to_dict()["error"] == "VALIDATION_ERROR"


def test_parse_money():
    assert parse_money("$1,250.00") == Decimal("1250.00")
    assert parse_money(7) == Decimal("7")
    with pytest.raises(ValueError):
        parse_money(True)
    with pytest.raises(ValueError):
        parse_money("NaN")


def test_oversized_numeric_attribute_is_dropped(node):
    """Integers beyond float range are reported, not raised."""
    report = validate([node("a", value=10**400, transactionVolume=10**400)], [])
    assert report.valid
    assert report.validated.nodes[0].attributes.score is None
    assert codes(report.warnings) == [IssueCode.ATTRIBUTE_DROPPED, IssueCode.ATTRIBUTE_DROPPED]
