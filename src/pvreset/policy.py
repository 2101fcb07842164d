"""Mutation policies: decide whether an object needs repair and produce the repair."""

from __future__ import annotations

from typing import Protocol

from google.protobuf.message import Message

DELETION_FIELDS = ("deletion_timestamp", "deletion_grace_period_seconds")


class MutationPolicy(Protocol):
    """Pure predicate/transform pair applied to each decoded object."""

    name: str

    def needs_repair(self, obj: Message) -> bool: ...

    def repair(self, obj: Message) -> Message: ...


def needs_repair(obj: Message) -> bool:
    """An object is pending deletion iff its metadata carries a deletion timestamp."""
    return obj.metadata.HasField("deletion_timestamp")


def repair(obj: Message) -> Message:
    """Return a copy of ``obj`` with the deletion marker fields cleared."""
    repaired = type(obj)()
    repaired.CopyFrom(obj)
    for field_name in DELETION_FIELDS:
        repaired.metadata.ClearField(field_name)
    return repaired


class TerminatingPolicy:
    """Resets objects stuck in Terminating back to their pre-deletion state."""

    name = "terminating"

    def needs_repair(self, obj: Message) -> bool:
        return needs_repair(obj)

    def repair(self, obj: Message) -> Message:
        return repair(obj)
