"""Stock bookkeeping around recording, editing and deleting sales."""

from datetime import date
from decimal import Decimal

import pytest

from shopdash.services import sales
from shopdash.services.catalog import is_low_stock
from shopdash.services.errors import InsufficientStock, InvalidSale, ProductNotFound, SaleNotFound
from shopdash.store.gateway import INVENTORY, SALES, StoreContext, StoreError, get_row


def _stock(store, ctx, product_id):
    return get_row(store, ctx, INVENTORY, product_id)["stock_quantity"]


# ---------------------------------------------------------------------------
# record_sale
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("quantity", [1, 4, 10])
def test_record_sale_decrements_stock_and_snapshots_amounts(store, ctx, make_product, sale_day, quantity):
    product = make_product(price=Decimal("12.50"), cost=Decimal("7.25"), stock_quantity=10)

    outcome = sales.record_sale(store, ctx, product["id"], quantity, sale_day)

    assert outcome.warnings == []
    assert outcome.stock_quantity == 10 - quantity
    assert _stock(store, ctx, product["id"]) == 10 - quantity
    assert outcome.sale["total_amount"] == Decimal("12.50") * quantity
    assert outcome.sale["profit"] == (Decimal("12.50") - Decimal("7.25")) * quantity
    assert outcome.sale["product_name"] == "Widget"
    assert outcome.sale["cost"] == Decimal("7.25")
    assert outcome.sale["sale_date"] == sale_day


def test_record_sale_over_stock_is_rejected_before_any_write(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=2)
    store.calls.clear()

    with pytest.raises(InsufficientStock) as excinfo:
        sales.record_sale(store, ctx, product["id"], 3, sale_day)

    assert excinfo.value.requested == 3
    assert excinfo.value.available == 2
    assert store.writes() == []
    assert _stock(store, ctx, product["id"]) == 2
    assert store.query_rows(ctx, SALES) == []


def test_record_sale_checks_against_cached_snapshot(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    stale = dict(product, stock_quantity=1)

    with pytest.raises(InsufficientStock):
        sales.record_sale(store, ctx, product["id"], 2, sale_day, product=stale)

    outcome = sales.record_sale(store, ctx, product["id"], 1, sale_day, product=stale)
    assert outcome.stock_quantity == 0


def test_record_sale_rejects_non_positive_quantity(store, ctx, make_product, sale_day):
    product = make_product()
    with pytest.raises(InvalidSale):
        sales.record_sale(store, ctx, product["id"], 0, sale_day)


def test_record_sale_unknown_product(store, ctx, sale_day):
    with pytest.raises(ProductNotFound):
        sales.record_sale(store, ctx, 999, 1, sale_day)


def test_record_sale_of_another_users_product_is_not_found(store, ctx, make_product, sale_day):
    product = make_product()
    with pytest.raises(ProductNotFound):
        sales.record_sale(store, StoreContext(user_id="someone-else"), product["id"], 1, sale_day)


def test_record_sale_keeps_sale_when_stock_write_fails(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    store.failing.add(("update", INVENTORY))

    outcome = sales.record_sale(store, ctx, product["id"], 3, sale_day)

    assert len(outcome.warnings) == 1
    assert outcome.warnings[0].product_id == product["id"]
    assert isinstance(outcome.warnings[0].cause, StoreError)
    assert outcome.stock_quantity is None
    assert len(store.query_rows(ctx, SALES)) == 1
    assert _stock(store, ctx, product["id"]) == 10
    assert ("delete", SALES) not in store.calls


def test_record_sale_insert_failure_propagates_without_stock_write(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    store.failing.add(("insert", SALES))

    with pytest.raises(StoreError):
        sales.record_sale(store, ctx, product["id"], 3, sale_day)

    assert ("update", INVENTORY) not in store.calls
    assert _stock(store, ctx, product["id"]) == 10


# ---------------------------------------------------------------------------
# edit_sale
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("old_qty,new_qty", [(3, 8), (5, 1), (4, 4), (2, 10)])
def test_edit_sale_applies_quantity_difference(store, ctx, make_product, sale_day, old_qty, new_qty):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], old_qty, sale_day).sale
    current = _stock(store, ctx, product["id"])

    outcome = sales.edit_sale(store, ctx, sale["id"], product["id"], new_qty, sale_day)

    assert outcome.stock_quantity == current - (new_qty - old_qty)
    assert _stock(store, ctx, product["id"]) == current - (new_qty - old_qty)
    assert outcome.sale["quantity"] == new_qty


def test_edit_sale_recomputes_amounts_from_current_prices(store, ctx, make_product, sale_day):
    product = make_product(price=Decimal("100.00"), cost=Decimal("60.00"))
    sale = sales.record_sale(store, ctx, product["id"], 2, sale_day).sale
    store.update_row(ctx, INVENTORY, product["id"], {"price": Decimal("110.00"), "cost": Decimal("70.00")})

    outcome = sales.edit_sale(store, ctx, sale["id"], product["id"], 2, date(2024, 6, 2))

    assert outcome.sale["total_amount"] == Decimal("220.00")
    assert outcome.sale["profit"] == Decimal("80.00")
    assert outcome.sale["cost"] == Decimal("70.00")
    assert outcome.sale["sale_date"] == date(2024, 6, 2)


def test_edit_sale_beyond_available_stock_writes_nothing(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 3, sale_day).sale
    store.calls.clear()

    with pytest.raises(InsufficientStock):
        sales.edit_sale(store, ctx, sale["id"], product["id"], 11, sale_day)

    assert store.writes() == []
    assert _stock(store, ctx, product["id"]) == 7


def test_edit_sale_up_to_stock_plus_original_quantity_is_allowed(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 3, sale_day).sale

    outcome = sales.edit_sale(store, ctx, sale["id"], product["id"], 10, sale_day)

    assert outcome.stock_quantity == 0


def test_edit_sale_to_other_product_leaves_original_stock_untouched(store, ctx, make_product, sale_day):
    """Known limitation: moving a sale does not give units back to the first product."""
    first = make_product(name="First", stock_quantity=10)
    second = make_product(name="Second", stock_quantity=10, price=Decimal("20.00"), cost=Decimal("5.00"))
    sale = sales.record_sale(store, ctx, first["id"], 3, sale_day).sale

    outcome = sales.edit_sale(store, ctx, sale["id"], second["id"], 4, sale_day)

    assert _stock(store, ctx, first["id"]) == 7
    assert _stock(store, ctx, second["id"]) == 6
    assert outcome.product_id == second["id"]
    assert outcome.sale["product_name"] == "Second"
    assert outcome.sale["total_amount"] == Decimal("80.00")


def test_edit_sale_stock_write_failure_is_a_warning(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 3, sale_day).sale
    store.failing.add(("update", INVENTORY))

    outcome = sales.edit_sale(store, ctx, sale["id"], product["id"], 5, sale_day)

    assert len(outcome.warnings) == 1
    assert get_row(store, ctx, SALES, sale["id"])["quantity"] == 5
    assert _stock(store, ctx, product["id"]) == 7


def test_edit_sale_unknown_sale(store, ctx, make_product, sale_day):
    product = make_product()
    with pytest.raises(SaleNotFound):
        sales.edit_sale(store, ctx, 404, product["id"], 1, sale_day)


def test_edit_sale_rejects_non_positive_quantity(store, ctx, make_product, sale_day):
    product = make_product()
    sale = sales.record_sale(store, ctx, product["id"], 1, sale_day).sale
    with pytest.raises(InvalidSale):
        sales.edit_sale(store, ctx, sale["id"], product["id"], -1, sale_day)


# ---------------------------------------------------------------------------
# delete_sale
# ---------------------------------------------------------------------------


def test_delete_sale_restores_quantity_to_current_stock(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 4, sale_day).sale
    store.update_row(ctx, INVENTORY, product["id"], {"stock_quantity": 20})

    outcome = sales.delete_sale(store, ctx, sale["id"])

    assert outcome.warnings == []
    assert outcome.stock_quantity == 24
    assert store.query_rows(ctx, SALES) == []


def test_record_then_delete_returns_stock_to_start(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=13)
    sale = sales.record_sale(store, ctx, product["id"], 5, sale_day).sale

    sales.delete_sale(store, ctx, sale["id"])

    assert _stock(store, ctx, product["id"]) == 13


def test_delete_sale_with_missing_product_is_a_warning(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 2, sale_day).sale
    store.delete_row(ctx, INVENTORY, product["id"])

    outcome = sales.delete_sale(store, ctx, sale["id"])

    assert len(outcome.warnings) == 1
    assert isinstance(outcome.warnings[0].cause, ProductNotFound)
    assert store.query_rows(ctx, SALES) == []


def test_delete_sale_stock_write_failure_keeps_deletion(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sale = sales.record_sale(store, ctx, product["id"], 2, sale_day).sale
    store.failing.add(("update", INVENTORY))

    outcome = sales.delete_sale(store, ctx, sale["id"])

    assert len(outcome.warnings) == 1
    assert outcome.stock_quantity is None
    assert store.query_rows(ctx, SALES) == []
    assert _stock(store, ctx, product["id"]) == 8


def test_delete_unknown_sale(store, ctx):
    with pytest.raises(SaleNotFound):
        sales.delete_sale(store, ctx, 12345)


# ---------------------------------------------------------------------------
# Worked example and reconciliation
# ---------------------------------------------------------------------------


def test_record_edit_delete_walkthrough(store, ctx, make_product):
    product = make_product(price=Decimal("100"), cost=Decimal("60"), stock_quantity=10, reorder_level=5)

    created = sales.record_sale(store, ctx, product["id"], 3, date(2024, 6, 1))
    assert created.sale["total_amount"] == Decimal("300")
    assert created.sale["profit"] == Decimal("120")
    assert created.stock_quantity == 7
    assert not is_low_stock(get_row(store, ctx, INVENTORY, product["id"]))

    edited = sales.edit_sale(store, ctx, created.sale["id"], product["id"], 8, date(2024, 6, 1))
    assert edited.stock_quantity == 2
    assert edited.sale["total_amount"] == Decimal("800")
    assert edited.sale["profit"] == Decimal("320")
    assert is_low_stock(get_row(store, ctx, INVENTORY, product["id"]))

    deleted = sales.delete_sale(store, ctx, created.sale["id"])
    assert deleted.stock_quantity == 10


def test_reconcile_recomputes_stock_from_sales_history(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sales.record_sale(store, ctx, product["id"], 3, sale_day)
    store.failing.add(("update", INVENTORY))
    sales.record_sale(store, ctx, product["id"], 2, sale_day)
    store.failing.clear()
    assert _stock(store, ctx, product["id"]) == 7

    assert sales.reconcile_product_stock(store, ctx, product["id"], 10) == 5
    assert _stock(store, ctx, product["id"]) == 5


def test_reconcile_rejects_stock_below_units_sold(store, ctx, make_product, sale_day):
    product = make_product(stock_quantity=10)
    sales.record_sale(store, ctx, product["id"], 6, sale_day)

    with pytest.raises(InsufficientStock):
        sales.reconcile_product_stock(store, ctx, product["id"], 5)
    with pytest.raises(InvalidSale):
        sales.reconcile_product_stock(store, ctx, product["id"], -1)
