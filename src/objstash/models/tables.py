"""SQLModel table definitions for the object store.

Three tables back the store: whole documents keyed by id, derived index rows
pointing back at document ids, and a flat key-value table for store-level
settings. Index rows hold no information of their own and can always be
regenerated from the documents and the schema.
"""

from sqlalchemy import Column, Index, Text
from sqlmodel import Field, SQLModel

MAX_INDEX_VALUE_LENGTH = 256
# Generated ids are 12 timestamp digits + a client id of up to 64 chars + 4 counter digits.
MAX_OBJECT_ID_LENGTH = 80


class ObjectRecord(SQLModel, table=True):
    """A serialized document. Ids are unique across all tables."""

    __tablename__ = "objstash_objects"

    id: str = Field(primary_key=True, max_length=MAX_OBJECT_ID_LENGTH)
    table_name: str = Field(max_length=32)
    data: str = Field(sa_column=Column(Text, nullable=False))


class IndexRecord(SQLModel, table=True):
    """One composite key of one declared index for one document."""

    __tablename__ = "objstash_index"
    __table_args__ = (Index("objstash_idx_index", "table_name", "index_name", "vals"),)

    id: int | None = Field(default=None, primary_key=True)
    table_name: str = Field(max_length=32)
    index_name: str = Field(max_length=32)
    vals: str = Field(max_length=MAX_INDEX_VALUE_LENGTH)
    object_id: str = Field(max_length=MAX_OBJECT_ID_LENGTH, index=True)


class KeyValueRecord(SQLModel, table=True):
    """Store-level setting."""

    __tablename__ = "objstash_kv"
    __table_args__ = (Index("objstash_idx_kv", "key", unique=True),)

    key: str = Field(primary_key=True, max_length=32)
    value: str = Field(sa_column=Column(Text, nullable=False))


STORE_TABLES = (ObjectRecord.__table__, IndexRecord.__table__, KeyValueRecord.__table__)
