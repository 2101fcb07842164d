"""Envelope codec for Kubernetes protobuf-encoded values.

Wire form: ``MAGIC`` followed by a serialized ``runtime.Unknown`` whose
``type_meta`` names the object's apiVersion/kind and whose ``raw`` field holds the
object's own serialized bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

from google.protobuf.message import DecodeError, EncodeError, Message

from pvreset.errors import EncodingError, MalformedEnvelopeError, SchemaMismatchError
from pvreset.schema import GroupVersionKind, SchemaDescriptor

MAGIC = b"k8s\x00"


@dataclass
class DecodedObject:
    """A typed object plus the envelope it was read from."""

    gvk: GroupVersionKind
    obj: Message
    envelope: Message | None = None


class EnvelopeCodec:
    """Stateless decode/encode bound to one SchemaDescriptor."""

    def __init__(self, descriptor: SchemaDescriptor) -> None:
        self.descriptor = descriptor

    def decode(self, data: bytes) -> DecodedObject:
        if len(data) < len(MAGIC) or data[: len(MAGIC)] != MAGIC:
            raise MalformedEnvelopeError(f"missing {MAGIC!r} prefix")

        envelope = self.descriptor.new_envelope()
        try:
            envelope.ParseFromString(data[len(MAGIC) :])
        except DecodeError as e:
            raise MalformedEnvelopeError(f"unreadable wrapper: {e}") from e
        if not envelope.HasField("raw"):
            raise MalformedEnvelopeError("wrapper carries no object payload")

        gvk = GroupVersionKind.from_api_version(
            envelope.type_meta.api_version, envelope.type_meta.kind
        )
        if gvk != self.descriptor.gvk:
            raise SchemaMismatchError(str(self.descriptor.gvk), str(gvk))

        obj = self.descriptor.new_object()
        try:
            obj.ParseFromString(envelope.raw)
        except DecodeError as e:
            raise MalformedEnvelopeError(f"unreadable {gvk.kind} payload: {e}") from e
        return DecodedObject(gvk=gvk, obj=obj, envelope=envelope)

    def encode(self, decoded: DecodedObject) -> bytes:
        if decoded.gvk != self.descriptor.gvk:
            raise SchemaMismatchError(str(self.descriptor.gvk), str(decoded.gvk))

        envelope = self.descriptor.new_envelope()
        if decoded.envelope is not None:
            envelope.CopyFrom(decoded.envelope)
        else:
            # Same fields, same order as the apiserver's protobuf serializer.
            envelope.type_meta.api_version = decoded.gvk.api_version
            envelope.type_meta.kind = decoded.gvk.kind
            envelope.content_encoding = ""
            envelope.content_type = ""
        try:
            envelope.raw = decoded.obj.SerializeToString()
            return MAGIC + envelope.SerializeToString()
        except (EncodeError, MemoryError) as e:
            raise EncodingError(str(e) or type(e).__name__) from e

    def round_trips(self, data: bytes) -> bool:
        """True if decoding and re-encoding ``data`` reproduces it byte for byte."""
        return self.encode(self.decode(data)) == data


def decode(data: bytes, descriptor: SchemaDescriptor) -> DecodedObject:
    return EnvelopeCodec(descriptor).decode(data)


def encode(decoded: DecodedObject, descriptor: SchemaDescriptor) -> bytes:
    return EnvelopeCodec(descriptor).encode(decoded)
