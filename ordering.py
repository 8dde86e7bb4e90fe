"""Ordered id sequences stored on parent documents.

``IdOrder`` is the only thing allowed to change an order array. It supports
exactly the operations the board needs: append on create, remove on delete,
and pop/insert for a move, so ids can never be duplicated.
"""
from errors import IndexOutOfRange


class IdOrder:
    def __init__(self, ids=None):
        self._ids = list(ids or [])
        if len(set(self._ids)) != len(self._ids):
            raise ValueError("order array contains duplicate ids")

    def __len__(self):
        return len(self._ids)

    def __iter__(self):
        return iter(self._ids)

    def __contains__(self, item_id):
        return item_id in self._ids

    def __repr__(self):
        return f"IdOrder({self._ids!r})"

    def append(self, item_id):
        if item_id in self._ids:
            raise ValueError(f"id {item_id} already present")
        self._ids.append(item_id)

    def remove(self, item_id):
        """Remove ``item_id``; returns False when it was not present."""
        try:
            self._ids.remove(item_id)
        except ValueError:
            return False
        return True

    def pop(self, index):
        # Negative indexes are rejected, not wrapped.
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self._ids):
            raise IndexOutOfRange(f"Index {index} out of range for {len(self._ids)} items")
        return self._ids.pop(index)

    def insert(self, index, item_id):
        """Insert at ``index`` clamped to ``[0, len]``; returns the index used."""
        if item_id in self._ids:
            raise ValueError(f"id {item_id} already present")
        index = max(0, min(index, len(self._ids)))
        self._ids.insert(index, item_id)
        return index

    def to_list(self):
        return list(self._ids)
