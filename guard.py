import logging

from sqlalchemy import select

from db import board_columns, boards, cells
from errors import Forbidden, NotFound

logger = logging.getLogger(__name__)

TABLES = {
    "Board": boards,
    "Column": board_columns,
    "Cell": cells,
}


def require_ownership(kind, row, owner_id):
    if row is None:
        raise NotFound(f"{kind} not found")
    if row["owner_id"] != owner_id:
        logger.warning("User %s denied access to %s %s", owner_id, kind, row["id"])
        raise Forbidden(f"{kind} belongs to another user")
    return row


def owned_query(kind, item_id, lock=False):
    table = TABLES[kind]
    query = select(table).where(table.c.id == item_id)
    if lock:
        query = query.with_for_update()
    return query


def load_owned(conn, kind, item_id, owner_id, lock=False):
    """Fetch a Board, Column or Cell row by id and check it belongs to ``owner_id``.

    With ``lock=True`` the row is selected FOR UPDATE so the caller can
    read-modify-write it inside its transaction.
    """
    row = conn.execute(owned_query(kind, item_id, lock)).mappings().first()
    return dict(require_ownership(kind, row, owner_id))
