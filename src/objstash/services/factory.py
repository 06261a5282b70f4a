"""Factory functions for creating and wiring object stores.

Provides a production factory that opens a file-backed database and a test
factory that uses an in-memory database for fast, isolated testing.
"""

from pathlib import Path
from typing import Any, Mapping

import structlog

from objstash.models.schema import StoreSchema
from objstash.services.ids import IdGenerator
from objstash.services.object_store import ObjectStore, create_engine_from_path

SchemaSource = StoreSchema | Mapping[str, Any] | str | Path


def load_schema(source: SchemaSource) -> StoreSchema:
    """Build a StoreSchema from a schema, a mapping, JSON text, or a JSON file path.

    Strings are treated as JSON text when they start with ``{`` and as file
    paths otherwise.

    Raises:
        StoreValidationError: If the declarations are malformed.
    """
    if isinstance(source, StoreSchema):
        return source
    if isinstance(source, Path):
        return StoreSchema.from_file(source)
    if isinstance(source, str):
        if source.lstrip().startswith("{"):
            return StoreSchema.from_json(source)
        return StoreSchema.from_file(source)
    return StoreSchema.from_mapping(source)


def create_object_store(
    db_path: Path | str,
    schema: SchemaSource,
    client_id: str | None = None,
) -> ObjectStore:
    """Create an initialized ObjectStore backed by a SQLite file.

    Args:
        db_path: SQLite database file. Parent directories are created.
        schema: Index declarations, in any form accepted by load_schema.
        client_id: When given, ``create`` assigns time-ordered ids for this client.

    Returns:
        ObjectStore with its tables created.
    """
    logger = structlog.get_logger(__name__)

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine_from_path(str(db_path))
    store = ObjectStore(
        engine=engine,
        schema=load_schema(schema),
        id_generator=IdGenerator(client_id) if client_id else None,
        logger=logger,
    )
    store.init()
    return store


def create_test_object_store(
    schema: SchemaSource | None = None,
    client_id: str | None = None,
) -> ObjectStore:
    """Create an initialized ObjectStore over an in-memory database.

    Each call creates independent storage, so tests don't interfere.
    """
    logger = structlog.get_logger(__name__)

    engine = create_engine_from_path(":memory:")
    store = ObjectStore(
        engine=engine,
        schema=load_schema(schema if schema is not None else {}),
        id_generator=IdGenerator(client_id) if client_id else None,
        logger=logger,
    )
    store.init()
    return store
