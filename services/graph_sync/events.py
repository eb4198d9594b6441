"""
Change Event Parser
===================

Decodes Debezium change-event payloads into normalized ChangeEvents.

Accepted shapes:
- Debezium JSON converter with schemas: {"schema": {...}, "payload": {...}}
- Debezium JSON converter without schemas: {"before", "after", "source", "op"}
- Flat form: {"table", "operation", "before", "after"}

Version: 0.1.0
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from services.graph_sync.errors import EnvelopeParseError


class Operation(str, Enum):
    """Normalized row operation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Debezium op codes; "r" is a snapshot read and applies like a create
_OP_CODES: dict[str, Operation] = {
    "c": Operation.CREATE,
    "r": Operation.CREATE,
    "u": Operation.UPDATE,
    "d": Operation.DELETE,
    "create": Operation.CREATE,
    "read": Operation.CREATE,
    "snapshot": Operation.CREATE,
    "update": Operation.UPDATE,
    "delete": Operation.DELETE,
}


@dataclass(frozen=True)
class ChangeEvent:
    """One row-level change on a mirrored table."""

    table: str
    op: Operation
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    source_ts_ms: int | None = None


def _decode(payload: str | bytes | dict[str, Any]) -> dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    try:
        decoded = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise EnvelopeParseError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(decoded, dict):
        raise EnvelopeParseError(f"Payload must be a JSON object, got {type(decoded).__name__}")
    return decoded


def _image(body: dict[str, Any], field: str) -> dict[str, Any] | None:
    value = body.get(field)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise EnvelopeParseError(f"'{field}' must be an object or null")
    return value


def _resolve_table(body: dict[str, Any], topic: str | None) -> str:
    source = body.get("source")
    if isinstance(source, dict) and source.get("table"):
        return str(source["table"])
    if body.get("table"):
        return str(body["table"])
    if topic:
        # <server>.<database>.<table>
        return topic.rsplit(".", 1)[-1]
    raise EnvelopeParseError("Change event does not name its source table")


def _resolve_op(body: dict[str, Any]) -> Operation:
    raw = body.get("op", body.get("operation"))
    if not isinstance(raw, str):
        raise EnvelopeParseError("Change event has no operation code")
    op = _OP_CODES.get(raw.strip().lower())
    if op is None:
        raise EnvelopeParseError(f"Unknown operation code '{raw}'")
    return op


def parse_change_event(
    payload: str | bytes | dict[str, Any],
    topic: str | None = None,
) -> ChangeEvent:
    """
    Parse one change-event payload.

    Args:
        payload: Raw message value (JSON text/bytes) or decoded mapping
        topic: Source topic, used to derive the table name when the
            payload does not carry one

    Returns:
        Normalized ChangeEvent

    Raises:
        EnvelopeParseError: If the payload is malformed
    """
    body = _decode(payload)

    # Debezium wraps the change in "payload" when schemas are enabled
    inner = body.get("payload")
    if "schema" in body or isinstance(inner, dict):
        if not isinstance(inner, dict):
            raise EnvelopeParseError("Envelope 'payload' must be an object")
        body = inner

    ts = body.get("ts_ms")
    if ts is None and isinstance(body.get("source"), dict):
        ts = body["source"].get("ts_ms")

    return ChangeEvent(
        table=_resolve_table(body, topic),
        op=_resolve_op(body),
        before=_image(body, "before"),
        after=_image(body, "after"),
        source_ts_ms=ts if isinstance(ts, int) else None,
    )
