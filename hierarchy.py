"""Board -> Column -> Cell store.

Every function opens its own transaction. Writes that touch an order array
lock the parent row first (board before columns, columns by ascending id), so
concurrent requests on the same board serialize instead of losing updates.
Children are inserted before their id is appended and their id is removed
before they are deleted, so an order array never points at a missing row.
"""
import logging

from sqlalchemy import delete, insert, select, update

from db import board_columns, boards, cells, get_engine, row_to_dict
from errors import BadParams, NotFound
from guard import load_owned
from ordering import IdOrder

logger = logging.getLogger(__name__)

COLUMN_FIELDS = ("title", "color")
REQUIRED_COLUMN_FIELDS = ("title",)

CELL_FIELDS = (
    "company",
    "position",
    "location",
    "contact_name",
    "contact_title",
    "contact_email",
    "note",
    "color",
)
REQUIRED_CELL_FIELDS = ("company", "position", "location")


def _clean(fields, allowed):
    """Keep only the editable fields; ids, owner and order arrays are dropped."""
    cleaned = {key: value for key, value in (fields or {}).items() if key in allowed}
    for key, value in cleaned.items():
        if value is not None and not isinstance(value, str):
            raise BadParams(f"'{key}' must be a string")
    return cleaned


def _check_required(kind, fields, required, creating):
    for name in required:
        if (creating or name in fields) and not fields.get(name):
            raise BadParams(f"{kind} {name} is required")


def populate_board(conn, board):
    """Expand a board row into ``{..., columns: [{..., cells: [...]}]}``.

    Columns and cells come back in order-array order. Ids that no longer
    resolve are left out.
    """
    board = row_to_dict(board)
    column_ids = board.pop("column_order") or []
    owner_id = board["owner_id"]

    columns_by_id = {}
    if column_ids:
        rows = conn.execute(
            select(board_columns).where(
                board_columns.c.id.in_(column_ids),
                board_columns.c.owner_id == owner_id,
            )
        ).mappings()
        columns_by_id = {row["id"]: row_to_dict(row) for row in rows}

    cell_ids = [cell_id for column in columns_by_id.values() for cell_id in column["cell_order"]]
    cells_by_id = {}
    if cell_ids:
        rows = conn.execute(
            select(cells).where(cells.c.id.in_(cell_ids), cells.c.owner_id == owner_id)
        ).mappings()
        cells_by_id = {row["id"]: row_to_dict(row) for row in rows}

    board["columns"] = []
    for column_id in column_ids:
        column = columns_by_id.get(column_id)
        if column is None:
            logger.debug("Board %s lists missing column %s", board["id"], column_id)
            continue
        column["cells"] = []
        for cell_id in column.pop("cell_order"):
            if cell_id not in cells_by_id:
                logger.debug("Column %s lists missing cell %s", column_id, cell_id)
                continue
            column["cells"].append(cells_by_id[cell_id])
        board["columns"].append(column)
    return board


def get_board(owner_id):
    with get_engine().connect() as conn:
        board = conn.execute(select(boards).where(boards.c.owner_id == owner_id)).mappings().first()
        if board is None:
            raise NotFound("Board not found")
        return populate_board(conn, board)


# ---- Columns ----


def create_column(board_id, owner_id, fields):
    fields = _clean(fields, COLUMN_FIELDS)
    _check_required("Column", fields, REQUIRED_COLUMN_FIELDS, creating=True)

    with get_engine().begin() as conn:
        board = load_owned(conn, "Board", board_id, owner_id, lock=True)
        column_id = conn.execute(
            insert(board_columns).values(**fields, owner_id=owner_id, cell_order=[])
        ).inserted_primary_key[0]
        column_order = IdOrder(board["column_order"])
        column_order.append(column_id)
        conn.execute(
            update(boards).where(boards.c.id == board_id).values(column_order=column_order.to_list())
        )
        column = conn.execute(
            select(board_columns).where(board_columns.c.id == column_id)
        ).mappings().one()

    logger.info("User %s created column %s on board %s", owner_id, column_id, board_id)
    return row_to_dict(column)


def update_column(column_id, owner_id, patch):
    patch = _clean(patch, COLUMN_FIELDS)
    _check_required("Column", patch, REQUIRED_COLUMN_FIELDS, creating=False)

    with get_engine().begin() as conn:
        load_owned(conn, "Column", column_id, owner_id, lock=True)
        if patch:
            conn.execute(update(board_columns).where(board_columns.c.id == column_id).values(**patch))


def delete_column(column_id, owner_id):
    """Remove a column from its board and delete it along with all its cells."""
    with get_engine().begin() as conn:
        board = conn.execute(
            select(boards).where(boards.c.owner_id == owner_id).with_for_update()
        ).mappings().first()
        column = load_owned(conn, "Column", column_id, owner_id, lock=True)

        if board is not None:
            column_order = IdOrder(board["column_order"])
            if column_order.remove(column_id):
                conn.execute(
                    update(boards)
                    .where(boards.c.id == board["id"])
                    .values(column_order=column_order.to_list())
                )
            else:
                logger.warning("Column %s was not on board %s", column_id, board["id"])

        cell_ids = list(column["cell_order"])
        if cell_ids:
            conn.execute(
                delete(cells).where(cells.c.id.in_(cell_ids), cells.c.owner_id == owner_id)
            )
        conn.execute(delete(board_columns).where(board_columns.c.id == column_id))

    logger.info("User %s deleted column %s and %d cells", owner_id, column_id, len(cell_ids))


# ---- Cells ----


def create_cell(column_id, owner_id, fields):
    fields = _clean(fields, CELL_FIELDS)
    _check_required("Cell", fields, REQUIRED_CELL_FIELDS, creating=True)

    with get_engine().begin() as conn:
        column = load_owned(conn, "Column", column_id, owner_id, lock=True)
        cell_id = conn.execute(
            insert(cells).values(**fields, owner_id=owner_id)
        ).inserted_primary_key[0]
        cell_order = IdOrder(column["cell_order"])
        cell_order.append(cell_id)
        conn.execute(
            update(board_columns)
            .where(board_columns.c.id == column_id)
            .values(cell_order=cell_order.to_list())
        )
        cell = conn.execute(select(cells).where(cells.c.id == cell_id)).mappings().one()

    logger.info("User %s created cell %s in column %s", owner_id, cell_id, column_id)
    return row_to_dict(cell)


def update_cell(cell_id, owner_id, patch):
    patch = _clean(patch, CELL_FIELDS)
    _check_required("Cell", patch, REQUIRED_CELL_FIELDS, creating=False)

    with get_engine().begin() as conn:
        load_owned(conn, "Cell", cell_id, owner_id, lock=True)
        if patch:
            conn.execute(update(cells).where(cells.c.id == cell_id).values(**patch))


def delete_cell(cell_id, owner_id):
    with get_engine().begin() as conn:
        # Lock the owner's columns before touching the cell so this takes
        # locks in the same order as delete_column and move_cell.
        columns = conn.execute(
            select(board_columns)
            .where(board_columns.c.owner_id == owner_id)
            .order_by(board_columns.c.id)
            .with_for_update()
        ).mappings().all()
        load_owned(conn, "Cell", cell_id, owner_id)

        for column in columns:
            cell_order = IdOrder(column["cell_order"])
            if cell_order.remove(cell_id):
                conn.execute(
                    update(board_columns)
                    .where(board_columns.c.id == column["id"])
                    .values(cell_order=cell_order.to_list())
                )
                break
        else:
            logger.warning("Cell %s was not in any column of user %s", cell_id, owner_id)

        conn.execute(delete(cells).where(cells.c.id == cell_id))

    logger.info("User %s deleted cell %s", owner_id, cell_id)
