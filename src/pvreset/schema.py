"""Schema descriptors: protobuf layouts for stored Kubernetes objects.

Layouts are assembled at runtime into a private descriptor pool instead of being
generated by ``protoc``. Only the fields the repair needs are modeled; everything
else is carried through decode/encode as unknown fields.

Layout rule: within each message, every unmodeled field number must be greater
than every modeled one. The protobuf runtime writes known fields in field-number
order followed by unknown fields, so this rule is what makes re-encoding
byte-exact against the Go serializer's output.
"""

from __future__ import annotations

from dataclasses import dataclass

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

_FD = descriptor_pb2.FieldDescriptorProto

_SCALAR_TYPES = {
    "string": _FD.TYPE_STRING,
    "bytes": _FD.TYPE_BYTES,
    "int32": _FD.TYPE_INT32,
    "int64": _FD.TYPE_INT64,
}

# message name -> [(field name, field number, scalar type or message name)]
Layout = dict[str, list[tuple[str, int, str]]]

RUNTIME_PACKAGE = "k8s.io.apimachinery.pkg.runtime"
CORE_V1_PACKAGE = "k8s.io.api.core.v1"

RUNTIME_LAYOUT: Layout = {
    "TypeMeta": [
        ("api_version", 1, "string"),
        ("kind", 2, "string"),
    ],
    "Unknown": [
        ("type_meta", 1, "TypeMeta"),
        ("raw", 2, "bytes"),
        ("content_encoding", 3, "string"),
        ("content_type", 4, "string"),
    ],
}

PERSISTENT_VOLUME_LAYOUT: Layout = {
    "Time": [
        ("seconds", 1, "int64"),
        ("nanos", 2, "int32"),
    ],
    # labels (11), annotations (12), ownerReferences (13), finalizers (14) and
    # managedFields (17) stay unmodeled.
    "ObjectMeta": [
        ("name", 1, "string"),
        ("generate_name", 2, "string"),
        ("namespace", 3, "string"),
        ("self_link", 4, "string"),
        ("uid", 5, "string"),
        ("resource_version", 6, "string"),
        ("generation", 7, "int64"),
        ("creation_timestamp", 8, "Time"),
        ("deletion_timestamp", 9, "Time"),
        ("deletion_grace_period_seconds", 10, "int64"),
    ],
    "PersistentVolumeSpec": [],
    "PersistentVolumeStatus": [
        ("phase", 1, "string"),
        ("message", 2, "string"),
        ("reason", 3, "string"),
    ],
    "PersistentVolume": [
        ("metadata", 1, "ObjectMeta"),
        ("spec", 2, "PersistentVolumeSpec"),
        ("status", 3, "PersistentVolumeStatus"),
    ],
}


@dataclass(frozen=True)
class GroupVersionKind:
    """Type identity of a stored object."""

    group: str
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        """The ``apiVersion`` string: bare version for the core group."""
        return f"{self.group}/{self.version}" if self.group else self.version

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> GroupVersionKind:
        group, _, version = api_version.rpartition("/")
        return cls(group=group, version=version, kind=kind)

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


def build_file_proto(package: str, layout: Layout) -> descriptor_pb2.FileDescriptorProto:
    """Translate a layout table into a proto2 FileDescriptorProto."""
    proto = descriptor_pb2.FileDescriptorProto(
        name=package.replace(".", "/") + "/generated.proto",
        package=package,
        syntax="proto2",
    )
    for message_name, fields in layout.items():
        message = proto.message_type.add(name=message_name)
        for field_name, number, type_name in fields:
            field = message.field.add(name=field_name, number=number, label=_FD.LABEL_OPTIONAL)
            if type_name in _SCALAR_TYPES:
                field.type = _SCALAR_TYPES[type_name]
            else:
                if type_name not in layout:
                    raise ValueError(
                        f"{message_name}.{field_name} references unknown message '{type_name}'"
                    )
                field.type = _FD.TYPE_MESSAGE
                field.type_name = f".{package}.{type_name}"
    return proto


@dataclass(frozen=True)
class SchemaDescriptor:
    """Binds one GroupVersionKind to its object and envelope message classes.

    Built once before any decode/encode and never mutated; a single instance is
    shared by the codec and the pipeline for a whole run.
    """

    gvk: GroupVersionKind
    object_class: type[Message]
    envelope_class: type[Message]

    @property
    def full_name(self) -> str:
        return self.object_class.DESCRIPTOR.full_name

    def new_object(self) -> Message:
        return self.object_class()

    def new_envelope(self) -> Message:
        return self.envelope_class()


def register(
    gvk: GroupVersionKind,
    layout: Layout,
    message_name: str,
    *,
    package: str,
) -> SchemaDescriptor:
    """Build a SchemaDescriptor for ``message_name`` in ``layout``.

    Each call uses its own descriptor pool, so registering never touches
    process-wide state.
    """
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(build_file_proto(RUNTIME_PACKAGE, RUNTIME_LAYOUT).SerializeToString())
    pool.AddSerializedFile(build_file_proto(package, layout).SerializeToString())
    object_class = message_factory.GetMessageClass(
        pool.FindMessageTypeByName(f"{package}.{message_name}")
    )
    envelope_class = message_factory.GetMessageClass(
        pool.FindMessageTypeByName(f"{RUNTIME_PACKAGE}.Unknown")
    )
    return SchemaDescriptor(gvk=gvk, object_class=object_class, envelope_class=envelope_class)


def persistent_volume_descriptor() -> SchemaDescriptor:
    """Descriptor for core/v1 PersistentVolume."""
    return register(
        GroupVersionKind(group="", version="v1", kind="PersistentVolume"),
        PERSISTENT_VOLUME_LAYOUT,
        "PersistentVolume",
        package=CORE_V1_PACKAGE,
    )
