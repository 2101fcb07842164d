"""Structured error types for pvreset."""

from __future__ import annotations

from typing import Any


class PvResetError(Exception):
    """Base error for all pvreset errors.

    ``key`` and ``report`` are filled in by the pipeline when an error aborts a
    run: the record being processed and the partial run report.
    """

    key: str | None = None
    report: Any = None


class ConfigError(PvResetError):
    """Raised when a run configuration is invalid."""

    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(f"Invalid configuration for '{field}': {detail}")


class CodecError(PvResetError):
    """Base error for envelope decode/encode failures."""


class MalformedEnvelopeError(CodecError):
    """Raised when a value is not a well-formed typed binary envelope."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed envelope: {detail}")


class SchemaMismatchError(CodecError):
    """Raised when an envelope's type identity differs from the registered schema."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Schema mismatch: expected {expected}, got {actual}")


class EncodingError(CodecError):
    """Raised when an object cannot be serialized back into an envelope."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Encoding failed: {detail}")


class RoundTripMismatchError(CodecError):
    """Raised when re-encoding an unmodified object does not reproduce the stored bytes."""

    def __init__(self, original_size: int, encoded_size: int) -> None:
        self.original_size = original_size
        self.encoded_size = encoded_size
        super().__init__(
            "Re-encoding is not byte-stable "
            f"(stored {original_size} bytes, re-encoded {encoded_size} bytes)"
        )


class StorageBackendError(PvResetError):
    """Raised when the datastore cannot be opened or read."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage backend error during {operation}: {detail}")


class StoreWriteError(PvResetError):
    """Raised when a repaired value cannot be committed."""

    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Failed to write '{name}': {detail}")


class DeadlineExceededError(PvResetError):
    """Raised when the run deadline expires before the scan is exhausted."""

    def __init__(self, timeout_s: float, processed: int) -> None:
        self.timeout_s = timeout_s
        self.processed = processed
        super().__init__(
            f"Deadline of {timeout_s:g}s exceeded after processing {processed} record(s)"
        )
