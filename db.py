"""Schema and engine for the job board.

Boards, columns and cells are independent rows. Containment lives only in the
parent's order array (``boards.column_order``, ``board_columns.cell_order``);
children never store their parent or their index.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.dialects.postgresql import JSONB

import config

logger = logging.getLogger(__name__)

metadata = MetaData()

IdArray = JSON().with_variant(JSONB(), "postgresql")


def utcnow():
    return datetime.now(timezone.utc)


users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("email", Text, nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("session_token", Text, unique=True),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

boards = Table(
    "boards",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "owner_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("column_order", IdArray, nullable=False),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

board_columns = Table(
    "board_columns",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "owner_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("title", Text, nullable=False),
    Column("color", Text),
    Column("cell_order", IdArray, nullable=False),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

cells = Table(
    "cells",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "owner_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("company", Text, nullable=False),
    Column("position", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("contact_name", Text),
    Column("contact_title", Text),
    Column("contact_email", Text),
    Column("note", Text),
    Column("color", Text),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

_engine = None


def init_engine(url=None, **kwargs):
    """Build the engine used by every store function, replacing any previous one."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(url or config.database_url(), **kwargs)
    logger.info("Database engine bound to %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_engine():
    if _engine is None:
        init_engine(pool_pre_ping=True)
    return _engine


def create_schema():
    metadata.create_all(get_engine())


def row_to_dict(row):
    if row is None:
        return None
    data = dict(row)
    for key in ("created_at", "updated_at"):
        if isinstance(data.get(key), datetime):
            data[key] = data[key].isoformat()
    return data
