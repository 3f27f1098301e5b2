"""
Remote store contract.

The dashboard keeps no state of its own: products live in the ``inventory``
collection and sales in the ``sales`` collection of a row store that only
offers independent select/insert/update/delete calls. Nothing here spans two
calls, so callers that touch both collections must decide what happens when
the second call fails.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

INVENTORY = "inventory"
SALES = "sales"
COLLECTIONS = (INVENTORY, SALES)

Row = dict[str, Any]


class StoreError(Exception):
    """Backend or network failure while talking to the store."""


class RowNotFound(StoreError):
    def __init__(self, collection: str, row_id: int) -> None:
        super().__init__(f"No row {row_id} in {collection}")
        self.collection = collection
        self.row_id = row_id


@dataclass(frozen=True)
class StoreContext:
    """Identity every store call is scoped to."""

    user_id: str


class RemoteStore(Protocol):
    def query_rows(
        self,
        ctx: StoreContext,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Row]: ...

    def insert_row(self, ctx: StoreContext, collection: str, fields: Mapping[str, Any]) -> Row: ...

    def update_row(self, ctx: StoreContext, collection: str, row_id: int, fields: Mapping[str, Any]) -> Row: ...

    def delete_row(self, ctx: StoreContext, collection: str, row_id: int) -> None: ...


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise StoreError(f"Unknown collection: {collection}")


def parse_order_by(order_by: str | None) -> tuple[str | None, bool]:
    """Splits ``"-date"`` style ordering into ``("date", True)``."""
    if not order_by:
        return None, False
    if order_by.startswith("-"):
        return order_by[1:], True
    return order_by, False


def get_row(store: RemoteStore, ctx: StoreContext, collection: str, row_id: int) -> Row:
    rows = store.query_rows(ctx, collection, {"id": row_id})
    if not rows:
        raise RowNotFound(collection, row_id)
    return rows[0]
