import logging
from typing import Any, Mapping

from shopdash.services.errors import ProductInUse, ProductNotFound
from shopdash.store.gateway import INVENTORY, SALES, RemoteStore, Row, RowNotFound, StoreContext, get_row

logger = logging.getLogger(__name__)


def is_low_stock(product: Mapping[str, Any]) -> bool:
    return int(product["stock_quantity"]) <= int(product["reorder_level"])


def list_products(
    store: RemoteStore,
    ctx: StoreContext,
    search: str | None = None,
    low_stock_only: bool = False,
) -> list[Row]:
    products = store.query_rows(ctx, INVENTORY, order_by="name")
    if search:
        needle = search.strip().lower()
        products = [
            p for p in products if needle in p["name"].lower() or needle in p["category"].lower()
        ]
    if low_stock_only:
        products = [p for p in products if is_low_stock(p)]
    return products


def get_product(store: RemoteStore, ctx: StoreContext, product_id: int) -> Row:
    try:
        return get_row(store, ctx, INVENTORY, product_id)
    except RowNotFound as exc:
        raise ProductNotFound(product_id) from exc


def create_product(store: RemoteStore, ctx: StoreContext, data: Mapping[str, Any]) -> Row:
    product = store.insert_row(ctx, INVENTORY, data)
    logger.info("created product %s (%s)", product["id"], product["name"])
    return product


def update_product(store: RemoteStore, ctx: StoreContext, product_id: int, changes: Mapping[str, Any]) -> Row:
    if not changes:
        return get_product(store, ctx, product_id)
    try:
        return store.update_row(ctx, INVENTORY, product_id, changes)
    except RowNotFound as exc:
        raise ProductNotFound(product_id) from exc


def delete_product(store: RemoteStore, ctx: StoreContext, product_id: int) -> Row:
    """Deletes a product that no sale refers to."""
    product = get_product(store, ctx, product_id)
    referencing = store.query_rows(ctx, SALES, {"product_id": product_id})
    if referencing:
        raise ProductInUse(product_id, len(referencing))
    try:
        store.delete_row(ctx, INVENTORY, product_id)
    except RowNotFound as exc:
        raise ProductNotFound(product_id) from exc
    logger.info("deleted product %s (%s)", product_id, product["name"])
    return product
