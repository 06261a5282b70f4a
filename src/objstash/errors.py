"""Error kinds raised by the object store.

Absences that are part of normal operation are not errors: ``find`` returns
an empty list and ``kv_get`` returns ``None``.
"""


class StoreError(Exception):
    """Base class for every error raised by objstash."""


class MissingFieldError(StoreError):
    """A document handed to a write operation has no usable ``id``."""

    def __init__(self, field: str, table: str | None = None) -> None:
        self.field = field
        self.table = table
        where = f" in table '{table}'" if table else ""
        super().__init__(f"document{where} is missing required field '{field}'")


class NotFoundError(StoreError):
    """No object record exists for the given table and id."""

    def __init__(self, table: str, object_id: str) -> None:
        self.table = table
        self.object_id = object_id
        super().__init__(f"{table}: {object_id}: object not found")


class CorruptRecordError(StoreError):
    """A stored object could not be deserialized back into a document."""

    def __init__(self, table: str, object_id: str, reason: str) -> None:
        self.table = table
        self.object_id = object_id
        self.reason = reason
        super().__init__(f"{table}: {object_id}: stored data is corrupt ({reason})")


class BackendError(StoreError):
    """The persistence layer failed. The native error is chained as ``__cause__``."""

    def __init__(self, operation: str, error: Exception) -> None:
        self.operation = operation
        self.error = error
        super().__init__(f"{operation} failed: {error}")


class StoreValidationError(StoreError):
    """Malformed schema, index reference, or document."""


__all__ = [
    "StoreError",
    "MissingFieldError",
    "NotFoundError",
    "CorruptRecordError",
    "BackendError",
    "StoreValidationError",
]
