"""
Tests for moving cells between and within columns.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

import db
import hierarchy
import reorder
from errors import Conflict, Forbidden, IndexOutOfRange, NotFound


def _cell_order(column_id):
    with db.get_engine().connect() as conn:
        return conn.execute(
            select(db.board_columns.c.cell_order).where(db.board_columns.c.id == column_id)
        ).scalar_one()


def _fill(alice, title, companies):
    column_id = alice["columns"][title]
    return [
        hierarchy.create_cell(
            column_id, alice["id"], {"company": company, "position": "SWE", "location": "NYC"}
        )["id"]
        for company in companies
    ]


def test_move_between_columns(alice):
    applied = alice["columns"]["Applied"]
    interview = alice["columns"]["Interview"]
    (cell_id,) = _fill(alice, "Applied", ["Acme"])

    assert _cell_order(applied) == [cell_id]
    reorder.move_cell(alice["id"], applied, 0, interview, 0)

    assert _cell_order(applied) == []
    assert _cell_order(interview) == [cell_id]


def test_move_into_middle_of_destination(alice):
    applied = alice["columns"]["Applied"]
    interview = alice["columns"]["Interview"]
    a, b = _fill(alice, "Applied", ["A", "B"])
    x, y = _fill(alice, "Interview", ["X", "Y"])

    reorder.move_cell(alice["id"], applied, 1, interview, 1)

    assert _cell_order(applied) == [a]
    assert _cell_order(interview) == [x, b, y]


def test_destination_index_is_clamped(alice):
    applied = alice["columns"]["Applied"]
    offer = alice["columns"]["Offer"]
    a, b = _fill(alice, "Applied", ["A", "B"])
    (x,) = _fill(alice, "Offer", ["X"])

    reorder.move_cell(alice["id"], applied, 0, offer, 99)
    reorder.move_cell(alice["id"], applied, 0, offer, -5)

    assert _cell_order(applied) == []
    assert _cell_order(offer) == [b, x, a]


@pytest.mark.parametrize(
    "source_index, dest_index, expected",
    [
        (0, 2, [1, 2, 0]),
        (2, 0, [2, 0, 1]),
        (1, 1, [0, 1, 2]),
        (0, 10, [1, 2, 0]),
    ],
)
def test_same_column_reorder(alice, source_index, dest_index, expected):
    applied = alice["columns"]["Applied"]
    ids = _fill(alice, "Applied", ["A", "B", "C"])

    reorder.move_cell(alice["id"], applied, source_index, applied, dest_index)

    assert _cell_order(applied) == [ids[i] for i in expected]


def test_move_preserves_cell_count(alice):
    applied = alice["columns"]["Applied"]
    phone = alice["columns"]["Phone Screen"]
    _fill(alice, "Applied", ["A", "B", "C"])
    _fill(alice, "Phone Screen", ["X"])

    for source, source_index, dest, dest_index in [
        (applied, 2, phone, 0),
        (phone, 0, applied, 1),
        (applied, 0, phone, 5),
        (phone, 1, phone, 0),
    ]:
        before = sorted(_cell_order(applied) + _cell_order(phone))
        reorder.move_cell(alice["id"], source, source_index, dest, dest_index)
        assert sorted(_cell_order(applied) + _cell_order(phone)) == before


@pytest.mark.parametrize("source_index", [-1, 1, 5])
def test_invalid_source_index(alice, source_index):
    applied = alice["columns"]["Applied"]
    interview = alice["columns"]["Interview"]
    (cell_id,) = _fill(alice, "Applied", ["Acme"])

    with pytest.raises(IndexOutOfRange):
        reorder.move_cell(alice["id"], applied, source_index, interview, 0)

    assert _cell_order(applied) == [cell_id]
    assert _cell_order(interview) == []


def test_move_from_empty_column(alice):
    with pytest.raises(IndexOutOfRange):
        reorder.move_cell(
            alice["id"], alice["columns"]["Offer"], 0, alice["columns"]["Applied"], 0
        )


def test_move_into_foreign_column(alice, bob):
    applied = alice["columns"]["Applied"]
    (cell_id,) = _fill(alice, "Applied", ["Acme"])

    with pytest.raises(Forbidden):
        reorder.move_cell(alice["id"], applied, 0, bob["columns"]["Applied"], 0)

    assert _cell_order(applied) == [cell_id]
    assert _cell_order(bob["columns"]["Applied"]) == []


def test_move_from_foreign_column(alice, bob):
    with pytest.raises(Forbidden):
        reorder.move_cell(
            bob["id"], alice["columns"]["Applied"], 0, bob["columns"]["Applied"], 0
        )


def test_move_to_missing_column(alice):
    applied = alice["columns"]["Applied"]
    (cell_id,) = _fill(alice, "Applied", ["Acme"])
    with pytest.raises(NotFound):
        reorder.move_cell(alice["id"], applied, 0, 9999, 0)
    assert _cell_order(applied) == [cell_id]


def test_failed_destination_write_rolls_back(alice, monkeypatch):
    applied = alice["columns"]["Applied"]
    interview = alice["columns"]["Interview"]
    (cell_id,) = _fill(alice, "Applied", ["Acme"])

    real_update = reorder.update
    calls = []

    def flaky_update(table):
        calls.append(table)
        if len(calls) == 2:
            raise OperationalError("UPDATE board_columns", {}, Exception("connection lost"))
        return real_update(table)

    monkeypatch.setattr(reorder, "update", flaky_update)

    with pytest.raises(Conflict):
        reorder.move_cell(alice["id"], applied, 0, interview, 0)

    assert _cell_order(applied) == [cell_id]
    assert _cell_order(interview) == []
