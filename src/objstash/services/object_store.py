"""Object store service persisting JSON documents and their index rows to SQLite.

Uses synchronous SQLAlchemy sessions. A ``put`` writes the object record and
every index row derived from it inside one transaction, so readers never see
a document without its index rows or the reverse.
"""

from typing import Any, Callable, Mapping, Sequence

import structlog
from pydantic import JsonValue, TypeAdapter, ValidationError
from sqlalchemy import Engine, create_engine, delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.schema import CreateIndex, CreateTable
from sqlmodel import col

from objstash.errors import (
    BackendError,
    CorruptRecordError,
    MissingFieldError,
    NotFoundError,
    StoreValidationError,
)
from objstash.models.schema import StoreSchema
from objstash.models.tables import STORE_TABLES, IndexRecord, KeyValueRecord, ObjectRecord
from objstash.models.values import is_finite_json
from objstash.services.index_keys import composite_keys, prefix_condition

Document = dict[str, Any]

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


class ObjectStore:
    """Persists documents by (table, id) and finds them through declared indexes.

    The store holds no mutable state besides the injected engine; the schema
    is read-only. Accepts an Engine via dependency injection to support both
    persistent and in-memory databases for testing.
    """

    def __init__(
        self,
        engine: Engine,
        schema: StoreSchema,
        id_generator: Callable[[], str] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._schema = schema
        self._id_generator = id_generator
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def schema(self) -> StoreSchema:
        return self._schema

    def init(self) -> None:
        """Create the store's tables and lookup indexes if they don't exist."""
        try:
            with self._engine.begin() as conn:
                for table in STORE_TABLES:
                    conn.execute(CreateTable(table, if_not_exists=True))
                    for index in table.indexes:
                        conn.execute(CreateIndex(index, if_not_exists=True))
        except SQLAlchemyError as e:
            raise BackendError("init", e) from e
        self._logger.info("store_initialized")

    def put(self, table: str, document: Mapping[str, Any]) -> str:
        """Store a document and regenerate its index rows.

        Re-storing an existing id replaces the object record and drops the
        index rows previously written for it.

        Args:
            table: Table the document belongs to.
            document: JSON object with a non-empty string ``id``.

        Returns:
            The document id.

        Raises:
            MissingFieldError: If the document has no usable ``id``.
            StoreValidationError: If the document is not JSON-serializable.
            BackendError: If the database write fails; nothing is committed.
        """
        object_id = self._require_id(table, document)
        validated = self._validate_document(table, object_id, document)
        data = _DOCUMENT_ADAPTER.dump_json(validated).decode("utf-8")
        index_rows = self._build_index_rows(table, object_id, validated)

        upsert = sqlite_insert(ObjectRecord).values(id=object_id, table_name=table, data=data)
        upsert = upsert.on_conflict_do_update(
            index_elements=["id"],
            set_={"table_name": upsert.excluded.table_name, "data": upsert.excluded.data},
        )
        try:
            with Session(self._engine) as session, session.begin():
                session.execute(delete(IndexRecord).where(col(IndexRecord.object_id) == object_id))
                session.execute(upsert)
                session.add_all(index_rows)
        except SQLAlchemyError as e:
            raise BackendError("put", e) from e

        self._logger.debug(
            "document_stored",
            table=table,
            object_id=object_id,
            index_row_count=len(index_rows),
        )
        return object_id

    def create(self, table: str, document: Mapping[str, Any]) -> str:
        """Store a document, assigning an id from the id generator if it has none."""
        if self._id_generator is not None and isinstance(document, Mapping) and not document.get("id"):
            document = {**document, "id": self._id_generator()}
        return self.put(table, document)

    def get(self, table: str, object_id: str) -> Document:
        """Retrieve a document by table and id.

        Raises:
            NotFoundError: If no such document is stored in ``table``.
            CorruptRecordError: If the stored data does not decode to a document.
            BackendError: If the database read fails.
        """
        statement = select(ObjectRecord.data).where(
            col(ObjectRecord.id) == object_id,
            col(ObjectRecord.table_name) == table,
        )
        try:
            with Session(self._engine) as session:
                data = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise BackendError("get", e) from e
        if data is None:
            raise NotFoundError(table, object_id)
        return self._deserialize(table, object_id, data)

    def find(self, table: str, index_name: str, known_values: Sequence[str]) -> list[Document]:
        """Find documents whose index key starts with ``known_values``.

        ``known_values`` is a prefix of the index's field tuple; an empty
        sequence matches every document indexed under ``index_name``.
        Unknown tables and indexes give an empty list.

        Returns:
            Matching documents, each once, ordered by ascending id.

        Raises:
            StoreValidationError: If more values are given than the index has fields.
            CorruptRecordError: If any matched document fails to decode.
            BackendError: If the database read fails.
        """
        self._validate_known_values(table, index_name, known_values)

        matching_ids = select(IndexRecord.object_id).where(
            col(IndexRecord.table_name) == table,
            col(IndexRecord.index_name) == index_name,
            prefix_condition(col(IndexRecord.vals), known_values),
        )
        statement = (
            select(ObjectRecord.id, ObjectRecord.data)
            .where(
                col(ObjectRecord.table_name) == table,
                col(ObjectRecord.id).in_(matching_ids),
            )
            .order_by(col(ObjectRecord.id))
        )
        try:
            with Session(self._engine) as session:
                rows = session.execute(statement).all()
        except SQLAlchemyError as e:
            raise BackendError("find", e) from e

        documents = [self._deserialize(table, row.id, row.data) for row in rows]
        self._logger.debug(
            "find_completed",
            table=table,
            index_name=index_name,
            known_value_count=len(known_values),
            result_count=len(documents),
        )
        return documents

    def delete(self, table: str, object_id: str) -> bool:
        """Delete a document and its index rows.

        Returns:
            True if the document was deleted, False if not found.
        """
        try:
            with Session(self._engine) as session, session.begin():
                result = session.execute(
                    delete(ObjectRecord).where(
                        col(ObjectRecord.id) == object_id,
                        col(ObjectRecord.table_name) == table,
                    )
                )
                if result.rowcount == 0:
                    return False
                session.execute(delete(IndexRecord).where(col(IndexRecord.object_id) == object_id))
        except SQLAlchemyError as e:
            raise BackendError("delete", e) from e

        self._logger.debug("document_deleted", table=table, object_id=object_id)
        return True

    def kv_set(self, key: str, value: str) -> None:
        """Set a value in the key-value table, overwriting any existing one."""
        upsert = sqlite_insert(KeyValueRecord).values(key=key, value=value)
        upsert = upsert.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": upsert.excluded.value},
        )
        try:
            with Session(self._engine) as session, session.begin():
                session.execute(upsert)
        except SQLAlchemyError as e:
            raise BackendError("kv_set", e) from e
        self._logger.debug("kv_set", key=key)

    def kv_get(self, key: str) -> str | None:
        """Get a value from the key-value table, or None if the key is absent."""
        try:
            with Session(self._engine) as session:
                record = session.get(KeyValueRecord, key)
                return None if record is None else record.value
        except SQLAlchemyError as e:
            raise BackendError("kv_get", e) from e

    def _require_id(self, table: str, document: Mapping[str, Any]) -> str:
        if not isinstance(document, Mapping):
            raise MissingFieldError("id", table)
        object_id = document.get("id")
        if not isinstance(object_id, str) or not object_id:
            raise MissingFieldError("id", table)
        return object_id

    def _validate_document(self, table: str, object_id: str, document: Mapping[str, Any]) -> Document:
        try:
            validated = _DOCUMENT_ADAPTER.validate_python(document)
        except ValidationError as e:
            raise StoreValidationError(f"{table}: {object_id}: document is not valid JSON data: {e}") from e
        if not is_finite_json(validated):
            raise StoreValidationError(f"{table}: {object_id}: document contains NaN or infinite numbers")
        return validated

    def _validate_known_values(self, table: str, index_name: str, known_values: Sequence[str]) -> None:
        if isinstance(known_values, str) or not all(isinstance(value, str) for value in known_values):
            raise StoreValidationError(f"{table}.{index_name}: known values must be a sequence of strings")
        declaration = self._schema.index(table, index_name)
        if declaration is not None and len(known_values) > len(declaration.fields):
            raise StoreValidationError(
                f"{table}.{index_name}: got {len(known_values)} values for an index of "
                f"{len(declaration.fields)} fields"
            )

    def _build_index_rows(self, table: str, object_id: str, document: Document) -> list[IndexRecord]:
        rows = []
        for declaration in self._schema.indexes_for(table):
            for vals in composite_keys(document, declaration.fields):
                rows.append(
                    IndexRecord(
                        table_name=table,
                        index_name=declaration.name,
                        vals=vals,
                        object_id=object_id,
                    )
                )
        return rows

    def _deserialize(self, table: str, object_id: str, data: Any) -> Document:
        if not isinstance(data, str):
            raise CorruptRecordError(table, object_id, "data field is not a string")
        try:
            return _DOCUMENT_ADAPTER.validate_json(data)
        except ValidationError as e:
            raise CorruptRecordError(table, object_id, str(e)) from e


def create_engine_from_path(db_path: str) -> Engine:
    """Create a SQLAlchemy engine for the given database path.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.

    Returns:
        Engine instance configured for SQLite.
    """
    if db_path == ":memory:":
        # Every session must see the same in-memory database, so share a
        # single connection across threads.
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(f"sqlite:///{db_path}")
