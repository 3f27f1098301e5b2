"""
Sale recording with stock bookkeeping.

A product's ``stock_quantity`` is a denormalized counter: stock taken in minus
units sold by the sales that still exist. The store offers no transaction
across the ``sales`` and ``inventory`` collections, so every operation here is
a two-step protocol:

1. the primary write on the sale row, whose failure aborts the operation;
2. the stock write on the product row, issued only after step 1 succeeded.

When step 2 fails the sale write is kept and a :class:`PartialFailure` is
returned in :attr:`SaleOutcome.warnings`. :func:`reconcile_product_stock`
recomputes the counter from the sales history when that happens.

Concurrent sessions are not detected; the last write to a row wins.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from shopdash.core.formatting import quantize_money
from shopdash.services.errors import InsufficientStock, InvalidSale, PartialFailure, ProductNotFound, SaleNotFound
from shopdash.store.gateway import INVENTORY, SALES, RemoteStore, Row, RowNotFound, StoreContext, StoreError, get_row

logger = logging.getLogger(__name__)


@dataclass
class SaleOutcome:
    sale: Row | None
    product_id: int
    stock_quantity: int | None
    warnings: list[PartialFailure] = field(default_factory=list)


def _get_product(store: RemoteStore, ctx: StoreContext, product_id: int) -> Row:
    try:
        return get_row(store, ctx, INVENTORY, product_id)
    except RowNotFound as exc:
        raise ProductNotFound(product_id) from exc


def _get_sale(store: RemoteStore, ctx: StoreContext, sale_id: int) -> Row:
    try:
        return get_row(store, ctx, SALES, sale_id)
    except RowNotFound as exc:
        raise SaleNotFound(sale_id) from exc


def sale_amounts(product: Row, quantity: int) -> tuple[Decimal, Decimal]:
    """Returns ``(total_amount, profit)`` at the product's current price and cost."""
    qty = Decimal(quantity)
    total_amount = Decimal(str(product["price"])) * qty
    profit = total_amount - Decimal(str(product["cost"])) * qty
    return quantize_money(total_amount), quantize_money(profit)


def _sale_fields(product: Row, quantity: int, sale_date: date) -> dict:
    total_amount, profit = sale_amounts(product, quantity)
    return {
        "product_id": product["id"],
        "product_name": product["name"],
        "cost": quantize_money(product["cost"]),
        "quantity": quantity,
        "total_amount": total_amount,
        "profit": profit,
        "sale_date": sale_date,
    }


def _write_stock(
    store: RemoteStore,
    ctx: StoreContext,
    outcome: SaleOutcome,
    new_stock: int,
    message: str,
) -> None:
    try:
        store.update_row(ctx, INVENTORY, outcome.product_id, {"stock_quantity": new_stock})
    except StoreError as exc:
        warning = PartialFailure(message, outcome.product_id, cause=exc)
        outcome.warnings.append(warning)
        logger.warning("%s (product=%s, intended stock=%s): %s", message, outcome.product_id, new_stock, exc)
        return
    outcome.stock_quantity = new_stock


def record_sale(
    store: RemoteStore,
    ctx: StoreContext,
    product_id: int,
    quantity: int,
    sale_date: date,
    product: Row | None = None,
) -> SaleOutcome:
    """Inserts a sale and then takes ``quantity`` units off the product.

    ``product`` may be a snapshot the caller already holds; the stock check is
    made against it and is advisory, as the store enforces no constraint.
    """
    if quantity <= 0:
        raise InvalidSale("Quantity must be positive")
    if product is None:
        product = _get_product(store, ctx, product_id)
    elif product["id"] != product_id:
        raise InvalidSale("Product snapshot does not match product_id")

    available = int(product["stock_quantity"])
    if quantity > available:
        raise InsufficientStock(product_id, quantity, available)

    sale = store.insert_row(ctx, SALES, _sale_fields(product, quantity, sale_date))
    logger.info("recorded sale %s: %s x %s", sale["id"], quantity, product["name"])

    outcome = SaleOutcome(sale=sale, product_id=product_id, stock_quantity=None)
    _write_stock(store, ctx, outcome, available - quantity, "Sale recorded but stock was not adjusted")
    return outcome


def edit_sale(
    store: RemoteStore,
    ctx: StoreContext,
    sale_id: int,
    product_id: int,
    quantity: int,
    sale_date: date,
) -> SaleOutcome:
    """Rewrites a sale and moves the target product's stock by the difference.

    Switching the sale to another product charges the full new quantity to
    that product and leaves the original product's stock untouched.
    """
    if quantity <= 0:
        raise InvalidSale("Quantity must be positive")
    sale = _get_sale(store, ctx, sale_id)
    product = _get_product(store, ctx, product_id)

    current_stock = int(product["stock_quantity"])
    if product_id == sale["product_id"]:
        delta = quantity - int(sale["quantity"])
    else:
        delta = quantity
        logger.info(
            "sale %s moved from product %s to %s; stock of product %s is not restored",
            sale_id,
            sale["product_id"],
            product_id,
            sale["product_id"],
        )
    new_stock = current_stock - delta
    if new_stock < 0:
        raise InsufficientStock(product_id, delta, current_stock)

    updated = store.update_row(ctx, SALES, sale_id, _sale_fields(product, quantity, sale_date))
    logger.info("updated sale %s: quantity %s -> %s", sale_id, sale["quantity"], quantity)

    outcome = SaleOutcome(sale=updated, product_id=product_id, stock_quantity=None)
    _write_stock(store, ctx, outcome, new_stock, "Sale updated but stock was not adjusted")
    return outcome


def delete_sale(store: RemoteStore, ctx: StoreContext, sale_id: int) -> SaleOutcome:
    """Deletes a sale and gives its units back to the product's current stock."""
    sale = _get_sale(store, ctx, sale_id)
    store.delete_row(ctx, SALES, sale_id)
    logger.info("deleted sale %s", sale_id)

    product_id = sale["product_id"]
    outcome = SaleOutcome(sale=sale, product_id=product_id, stock_quantity=None)
    message = "Sale deleted but stock was not restored"
    try:
        product = _get_product(store, ctx, product_id)
    except (ProductNotFound, StoreError) as exc:
        outcome.warnings.append(PartialFailure(message, product_id, cause=exc))
        logger.warning("%s (product=%s): %s", message, product_id, exc)
        return outcome

    _write_stock(store, ctx, outcome, int(product["stock_quantity"]) + int(sale["quantity"]), message)
    return outcome


def reconcile_product_stock(
    store: RemoteStore,
    ctx: StoreContext,
    product_id: int,
    stocked_quantity: int,
) -> int:
    """Resets a product's stock to ``stocked_quantity`` minus all units sold."""
    if stocked_quantity < 0:
        raise InvalidSale("Stocked quantity must not be negative")
    _get_product(store, ctx, product_id)
    sold = sum(int(row["quantity"]) for row in store.query_rows(ctx, SALES, {"product_id": product_id}))
    new_stock = stocked_quantity - sold
    if new_stock < 0:
        raise InsufficientStock(product_id, sold, stocked_quantity)
    store.update_row(ctx, INVENTORY, product_id, {"stock_quantity": new_stock})
    logger.info("reconciled product %s: stocked=%s sold=%s stock=%s", product_id, stocked_quantity, sold, new_stock)
    return new_stock
