"""Render decoded objects for read-only CLI commands."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from google.protobuf.json_format import MessageToDict
from google.protobuf.message import Message

from pvreset.codec import DecodedObject
from pvreset.policy import needs_repair


def format_time(seconds: int, nanos: int = 0) -> str:
    """RFC 3339 UTC timestamp, the way Kubernetes prints metav1.Time."""
    ts = datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def _convert_times(value: Any) -> Any:
    if isinstance(value, dict):
        if "seconds" in value and set(value) <= {"seconds", "nanos"}:
            return format_time(int(value["seconds"]), int(value.get("nanos", 0)))
        return {k: _convert_times(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert_times(v) for v in value]
    return value


def to_document(decoded: DecodedObject) -> dict[str, Any]:
    """apiVersion/kind header plus the modeled fields of the object."""
    doc: dict[str, Any] = {"apiVersion": decoded.gvk.api_version, "kind": decoded.gvk.kind}
    doc.update(_convert_times(MessageToDict(decoded.obj)))
    return doc


def summarize(obj: Message) -> dict[str, Any]:
    """One row of the ``list`` table."""
    meta = obj.metadata
    deletion = None
    if meta.HasField("deletion_timestamp"):
        deletion = format_time(meta.deletion_timestamp.seconds, meta.deletion_timestamp.nanos)
    grace = (
        meta.deletion_grace_period_seconds
        if meta.HasField("deletion_grace_period_seconds")
        else None
    )
    return {
        "name": meta.name,
        "phase": obj.status.phase,
        "terminating": needs_repair(obj),
        "deletion_timestamp": deletion,
        "grace_period_s": grace,
    }
