"""Drag-and-drop moves of cells between (or within) columns."""
import logging

from sqlalchemy import update
from sqlalchemy.exc import DBAPIError

from db import board_columns, get_engine
from errors import Conflict
from guard import load_owned
from ordering import IdOrder

logger = logging.getLogger(__name__)


def move_cell(owner_id, source_column_id, source_index, dest_column_id, dest_index):
    """Move the cell at ``source_index`` of one column to ``dest_index`` of another.

    ``dest_index`` is clamped to the destination's bounds; the source and
    destination may be the same column. Both order arrays are written in one
    transaction, so a failure leaves neither changed.
    """
    same_column = source_column_id == dest_column_id
    try:
        with get_engine().begin() as conn:
            locked = {}
            for column_id in sorted({source_column_id, dest_column_id}):
                locked[column_id] = load_owned(conn, "Column", column_id, owner_id, lock=True)

            source = IdOrder(locked[source_column_id]["cell_order"])
            dest = source if same_column else IdOrder(locked[dest_column_id]["cell_order"])

            cell_id = source.pop(source_index)
            placed_at = dest.insert(dest_index, cell_id)

            conn.execute(
                update(board_columns)
                .where(board_columns.c.id == source_column_id)
                .values(cell_order=source.to_list())
            )
            if not same_column:
                conn.execute(
                    update(board_columns)
                    .where(board_columns.c.id == dest_column_id)
                    .values(cell_order=dest.to_list())
                )
    except DBAPIError:
        logger.exception(
            "Move from column %s to column %s rolled back", source_column_id, dest_column_id
        )
        raise Conflict()

    logger.info(
        "User %s moved cell %s from column %s[%s] to column %s[%s]",
        owner_id,
        cell_id,
        source_column_id,
        source_index,
        dest_column_id,
        placed_at,
    )
    return cell_id
