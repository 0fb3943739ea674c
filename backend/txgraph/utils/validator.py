"""
Network data validation utilities for TxGraph.

validate() is a pure function: it never raises on bad input and instead
returns a ValidationReport listing every problem with field-level detail.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from txgraph.exceptions import ValidationError
from txgraph.models.graph import (
    Edge,
    EdgeKind,
    Node,
    NodeAttributes,
    NodeKind,
    Scalar,
)


DEFAULT_MAX_EXTRA_ATTRIBUTES = 32


class IssueCode(str, Enum):
    # errors
    INVALID_PAYLOAD = "InvalidPayload"
    DUPLICATE_NODE_ID = "DuplicateNodeId"
    MISSING_NODE_FIELD = "MissingNodeField"
    DUPLICATE_EDGE_ID = "DuplicateEdgeId"
    MISSING_EDGE_FIELD = "MissingEdgeField"
    DANGLING_EDGE_REFERENCE = "DanglingEdgeReference"
    INVALID_FIELD_VALUE = "InvalidFieldValue"
    # warnings
    SELF_LOOP = "SelfLoopWarning"
    ATTRIBUTE_DROPPED = "AttributeDropped"


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    message: str
    collection: str
    index: Optional[int] = None
    field: Optional[str] = None
    item_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "collection": self.collection,
            "index": self.index,
            "field": self.field,
            "id": self.item_id,
        }


@dataclass(frozen=True)
class ValidatedInput:
    """Parsed nodes and edges that passed every structural check."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]


@dataclass
class ValidationReport:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    validated: Optional[ValidatedInput] = None
    node_count: int = 0
    edge_count: int = 0

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "node_count": self.node_count,
            "edge_count": self.edge_count,
        }


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(value)
    try:
        result = float(value)
    except OverflowError as exc:
        raise ValueError(value) from exc
    if not math.isfinite(result):
        raise ValueError(value)
    return result


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise ValueError(value)
    return value


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(value)
    return value


# data keys with a typed NodeAttributes field: key -> (attribute, parser)
KNOWN_NODE_FIELDS = {
    "value": ("score", _as_float),
    "category": ("category", _as_str),
    "status": ("status", _as_str),
    "accountAge": ("account_age", _as_int),
    "transactionCount": ("transaction_count", _as_int),
    "transactionVolume": ("transaction_volume", _as_float),
}


def _is_scalar(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, (str, int, bool))


def _present(value: Any) -> bool:
    return value is not None and value != ""


def parse_money(value: Any) -> Decimal:
    """Parse an amount given as a number or a display string like "$1,250.00"."""
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "").strip()
        if not cleaned:
            raise ValueError(value)
        try:
            amount = Decimal(cleaned)
        except InvalidOperation as exc:
            raise ValueError(value) from exc
    else:
        raise ValueError(value)
    # amounts go back out as JSON floats
    if not amount.is_finite() or not math.isfinite(float(amount)):
        raise ValueError(value)
    return amount


class _Collector:
    """Accumulates issues for one validate() call."""

    def __init__(self):
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

    def error(self, code, message, collection, index=None, field=None, item_id=None):
        self.errors.append(
            ValidationIssue(code, message, collection, index, field, item_id)
        )

    def warn(self, code, message, collection, index=None, field=None, item_id=None):
        self.warnings.append(
            ValidationIssue(code, message, collection, index, field, item_id)
        )


def _collect_extras(
    items: List[Tuple[str, Any]],
    limit: int,
    issues: _Collector,
    collection: str,
    index: int,
    item_id: Optional[str],
) -> Tuple[Tuple[str, Scalar], ...]:
    extras: List[Tuple[str, Scalar]] = []
    for key, value in items:
        if not _is_scalar(value):
            issues.warn(
                IssueCode.ATTRIBUTE_DROPPED,
                f"Attribute '{key}' is not a scalar value and was dropped",
                collection, index, f"data.{key}", item_id,
            )
            continue
        if len(extras) >= limit:
            issues.warn(
                IssueCode.ATTRIBUTE_DROPPED,
                f"Attribute '{key}' exceeds the limit of {limit} extra attributes and was dropped",
                collection, index, f"data.{key}", item_id,
            )
            continue
        extras.append((str(key), value))
    return tuple(extras)


def _parse_node_kind(raw: Any):
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValueError(raw)
    try:
        return NodeKind(raw.lower())
    except ValueError:
        return raw


def _check_nodes(
    raw_nodes: Sequence[Any], limit: int, issues: _Collector
) -> Tuple[List[Node], Set[str]]:
    nodes: List[Node] = []
    node_ids: Set[str] = set()

    for index, raw in enumerate(raw_nodes):
        if not isinstance(raw, Mapping):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Node must be an object", "nodes", index)
            continue

        node_id = raw.get("id")
        label = raw.get("label")
        ok = True

        if not _present(node_id):
            issues.error(IssueCode.MISSING_NODE_FIELD, "Node is missing 'id'", "nodes", index, "id")
            ok = False
        elif not isinstance(node_id, str):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Node 'id' must be a string", "nodes", index, "id")
            ok = False
        elif node_id in node_ids:
            issues.error(
                IssueCode.DUPLICATE_NODE_ID,
                f"Duplicate node id '{node_id}'",
                "nodes", index, "id", node_id,
            )
            ok = False
        else:
            node_ids.add(node_id)

        item_id = node_id if isinstance(node_id, str) else None

        if not _present(label):
            issues.error(IssueCode.MISSING_NODE_FIELD, "Node is missing 'label'", "nodes", index, "label", item_id)
            ok = False
        elif not isinstance(label, str):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Node 'label' must be a string", "nodes", index, "label", item_id)
            ok = False

        try:
            kind = _parse_node_kind(raw.get("type"))
        except ValueError:
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Node 'type' must be a string", "nodes", index, "type", item_id)
            ok = False

        data = raw.get("data")
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Node 'data' must be an object", "nodes", index, "data", item_id)
            continue

        known: Dict[str, Any] = {}
        rest: List[Tuple[str, Any]] = []
        for key, value in data.items():
            if key in KNOWN_NODE_FIELDS:
                attr, parse = KNOWN_NODE_FIELDS[key]
                if value is None:
                    continue
                try:
                    known[attr] = parse(value)
                except ValueError:
                    issues.warn(
                        IssueCode.ATTRIBUTE_DROPPED,
                        f"Attribute '{key}' has an unexpected type and was dropped",
                        "nodes", index, f"data.{key}", item_id,
                    )
            else:
                rest.append((key, value))
        extras = _collect_extras(rest, limit, issues, "nodes", index, item_id)

        if ok:
            nodes.append(
                Node(
                    id=node_id,
                    label=label,
                    kind=kind,
                    attributes=NodeAttributes(extras=extras, **known),
                )
            )

    return nodes, node_ids


def _resolve_amount(raw: Mapping, data: Mapping) -> Tuple[Decimal, Optional[str]]:
    """Returns the amount and the field it came from (None when defaulted)."""
    if raw.get("amount") is not None:
        return parse_money(raw["amount"]), "amount"
    if data.get("amount") is not None:
        return parse_money(data["amount"]), "data.amount"
    label = raw.get("label")
    if isinstance(label, str):
        # display labels are best effort, e.g. "$1,250.00"
        try:
            return parse_money(label), None
        except ValueError:
            pass
    return Decimal("0"), None


def _check_edges(
    raw_edges: Sequence[Any], node_ids: Set[str], limit: int, issues: _Collector
) -> List[Edge]:
    edges: List[Edge] = []
    edge_ids: Set[str] = set()

    for index, raw in enumerate(raw_edges):
        if not isinstance(raw, Mapping):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge must be an object", "edges", index)
            continue

        edge_id = raw.get("id")
        ok = True

        if not _present(edge_id):
            issues.error(IssueCode.MISSING_EDGE_FIELD, "Edge is missing 'id'", "edges", index, "id")
            ok = False
        elif not isinstance(edge_id, str):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge 'id' must be a string", "edges", index, "id")
            ok = False
        elif edge_id in edge_ids:
            issues.error(
                IssueCode.DUPLICATE_EDGE_ID,
                f"Duplicate edge id '{edge_id}'",
                "edges", index, "id", edge_id,
            )
            ok = False
        else:
            edge_ids.add(edge_id)

        item_id = edge_id if isinstance(edge_id, str) else None

        for end in ("source", "target"):
            ref = raw.get(end)
            if not _present(ref):
                issues.error(IssueCode.MISSING_EDGE_FIELD, f"Edge is missing '{end}'", "edges", index, end, item_id)
                ok = False
            elif not isinstance(ref, str) or ref not in node_ids:
                issues.error(
                    IssueCode.DANGLING_EDGE_REFERENCE,
                    f"Edge {end} '{ref}' does not reference a known node",
                    "edges", index, end, item_id,
                )
                ok = False

        data = raw.get("data")
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge 'data' must be an object", "edges", index, "data", item_id)
            continue

        amount = Decimal("0")
        try:
            amount, amount_field = _resolve_amount(raw, data)
            if amount < 0:
                issues.error(
                    IssueCode.INVALID_FIELD_VALUE,
                    "Edge amount must not be negative",
                    "edges", index, amount_field or "label", item_id,
                )
                ok = False
        except ValueError:
            field_name = "amount" if raw.get("amount") is not None else "data.amount"
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge amount is not a number", "edges", index, field_name, item_id)
            ok = False

        weight = 1.0
        if raw.get("weight") is not None:
            try:
                weight = _as_float(raw["weight"])
            except ValueError:
                issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge 'weight' must be a number", "edges", index, "weight", item_id)
                ok = False

        kind = EdgeKind.TRANSACTION
        raw_kind = raw.get("type")
        if _present(raw_kind):
            try:
                kind = EdgeKind(str(raw_kind).lower())
            except ValueError:
                issues.error(
                    IssueCode.INVALID_FIELD_VALUE,
                    f"Unknown edge type '{raw_kind}'",
                    "edges", index, "type", item_id,
                )
                ok = False

        is_fraud = raw.get("isFraud")
        if is_fraud is not None and not isinstance(is_fraud, bool):
            issues.error(IssueCode.INVALID_FIELD_VALUE, "Edge 'isFraud' must be a boolean", "edges", index, "isFraud", item_id)
            ok = False

        label = raw.get("label")
        if label is not None and not isinstance(label, str):
            label = str(label)

        extras = _collect_extras(
            [(k, v) for k, v in data.items() if k != "amount"],
            limit, issues, "edges", index, item_id,
        )

        if not ok:
            continue

        if raw["source"] == raw["target"]:
            issues.warn(
                IssueCode.SELF_LOOP,
                f"Edge '{edge_id}' is a self-loop on '{raw['source']}'",
                "edges", index, "target", edge_id,
            )

        edges.append(
            Edge(
                id=edge_id,
                source=raw["source"],
                target=raw["target"],
                amount=amount,
                weight=weight,
                kind=kind,
                is_fraud=is_fraud,
                label=label,
                extras=extras,
            )
        )

    return edges


def validate(
    raw_nodes: Any,
    raw_edges: Any,
    max_extra_attributes: Optional[int] = None,
) -> ValidationReport:
    """Validate raw node and edge records before they become a Graph."""
    issues = _Collector()
    limit = DEFAULT_MAX_EXTRA_ATTRIBUTES if max_extra_attributes is None else max_extra_attributes

    if not isinstance(raw_nodes, (list, tuple)) or not isinstance(raw_edges, (list, tuple)):
        issues.error(
            IssueCode.INVALID_PAYLOAD,
            "Network data must contain 'nodes' and 'edges' lists",
            "payload",
        )
        return ValidationReport(errors=issues.errors)

    nodes, node_ids = _check_nodes(raw_nodes, limit, issues)
    edges = _check_edges(raw_edges, node_ids, limit, issues)

    report = ValidationReport(
        errors=issues.errors,
        warnings=issues.warnings,
        node_count=len(raw_nodes),
        edge_count=len(raw_edges),
    )
    if report.valid:
        report.validated = ValidatedInput(nodes=tuple(nodes), edges=tuple(edges))
    return report


def ensure_valid(report: ValidationReport) -> ValidatedInput:
    """Return the validated input or raise ValidationError with every issue."""
    if not report.valid or report.validated is None:
        raise ValidationError(
            f"Network data failed validation with {len(report.errors)} error(s)",
            issues=[issue.to_dict() for issue in report.errors],
        )
    return report.validated
