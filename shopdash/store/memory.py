import copy
import itertools
import threading
from datetime import datetime
from typing import Any, Mapping

from shopdash.store.gateway import (
    COLLECTIONS,
    Row,
    RowNotFound,
    StoreContext,
    StoreError,
    check_collection,
    parse_order_by,
)


class MemoryStore:
    """Process-local store with the same contract as :class:`SqlStore`.

    Rows are copied on the way in and out so callers never share state with
    the store, the way they would not with a remote backend. One instance is
    shared by every request thread, so each call holds the store lock.
    """

    def __init__(self) -> None:
        self._rows: dict[str, dict[int, Row]] = {name: {} for name in COLLECTIONS}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _owned(self, ctx: StoreContext, collection: str, row_id: int) -> Row:
        row = self._rows[collection].get(row_id)
        if row is None or row["user_id"] != ctx.user_id:
            raise RowNotFound(collection, row_id)
        return row

    def query_rows(
        self,
        ctx: StoreContext,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Row]:
        check_collection(collection)
        with self._lock:
            rows = [row for row in self._rows[collection].values() if row["user_id"] == ctx.user_id]
            rows = [copy.deepcopy(row) for row in rows]
        for name, value in (filters or {}).items():
            rows = [row for row in rows if row.get(name) == value]
        rows.sort(key=lambda row: row["id"])
        column_name, descending = parse_order_by(order_by)
        if column_name:
            if any(column_name not in row for row in rows):
                raise StoreError(f"Unknown column {column_name!r} on {collection}")
            rows.sort(key=lambda row: row[column_name], reverse=descending)
        return rows

    def insert_row(self, ctx: StoreContext, collection: str, fields: Mapping[str, Any]) -> Row:
        check_collection(collection)
        row = copy.deepcopy(dict(fields))
        with self._lock:
            row.update(id=next(self._ids), user_id=ctx.user_id, created_at=datetime.utcnow())
            self._rows[collection][row["id"]] = row
            return copy.deepcopy(row)

    def update_row(self, ctx: StoreContext, collection: str, row_id: int, fields: Mapping[str, Any]) -> Row:
        check_collection(collection)
        for name in ("id", "user_id", "created_at"):
            if name in fields:
                raise StoreError(f"Field {name!r} cannot be written")
        with self._lock:
            row = self._owned(ctx, collection, row_id)
            row.update(copy.deepcopy(dict(fields)))
            return copy.deepcopy(row)

    def delete_row(self, ctx: StoreContext, collection: str, row_id: int) -> None:
        check_collection(collection)
        with self._lock:
            self._owned(ctx, collection, row_id)
            del self._rows[collection][row_id]

    def purge_user(self, user_id: str) -> int:
        removed = 0
        with self._lock:
            for rows in self._rows.values():
                for row_id in [row_id for row_id, row in rows.items() if row["user_id"] == user_id]:
                    del rows[row_id]
                    removed += 1
        return removed
