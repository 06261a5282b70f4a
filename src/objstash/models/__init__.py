from objstash.models.enums import ValueKind
from objstash.models.schema import IndexDeclaration, StoreSchema, TableSchema
from objstash.models.tables import IndexRecord, KeyValueRecord, ObjectRecord
from objstash.models.values import canonical_scalar, classify

__all__ = [
    "IndexDeclaration",
    "TableSchema",
    "StoreSchema",
    "ObjectRecord",
    "IndexRecord",
    "KeyValueRecord",
    "ValueKind",
    "classify",
    "canonical_scalar",
]
