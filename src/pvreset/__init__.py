"""pvreset: reset Terminating PersistentVolumes stored in a kine SQLite datastore."""

__version__ = "0.1.0"

from pvreset.codec import MAGIC, DecodedObject, EnvelopeCodec, decode, encode
from pvreset.config import RepairConfig, config_from_env
from pvreset.errors import (
    CodecError,
    ConfigError,
    DeadlineExceededError,
    EncodingError,
    MalformedEnvelopeError,
    PvResetError,
    RoundTripMismatchError,
    SchemaMismatchError,
    StorageBackendError,
    StoreWriteError,
)
from pvreset.pipeline import (
    Deadline,
    RecordOutcome,
    RecordResult,
    RepairPipeline,
    RepairReport,
    reset_terminating,
)
from pvreset.policy import MutationPolicy, TerminatingPolicy, needs_repair, repair
from pvreset.schema import GroupVersionKind, SchemaDescriptor, persistent_volume_descriptor
from pvreset.store import KineStore, Record, open_store

__all__ = [
    "__version__",
    "MAGIC",
    "DecodedObject",
    "EnvelopeCodec",
    "decode",
    "encode",
    "RepairConfig",
    "config_from_env",
    "PvResetError",
    "ConfigError",
    "CodecError",
    "MalformedEnvelopeError",
    "SchemaMismatchError",
    "EncodingError",
    "RoundTripMismatchError",
    "StorageBackendError",
    "StoreWriteError",
    "DeadlineExceededError",
    "Deadline",
    "RecordOutcome",
    "RecordResult",
    "RepairPipeline",
    "RepairReport",
    "reset_terminating",
    "MutationPolicy",
    "TerminatingPolicy",
    "needs_repair",
    "repair",
    "GroupVersionKind",
    "SchemaDescriptor",
    "persistent_volume_descriptor",
    "KineStore",
    "Record",
    "open_store",
]
