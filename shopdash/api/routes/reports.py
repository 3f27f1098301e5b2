from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response

from shopdash.api.deps import get_now, get_store, get_store_context
from shopdash.api.errors import to_http_error
from shopdash.api.routes.inventory import product_out
from shopdash.core.config import settings
from shopdash.schemas.inventory import (
    CategorySliceOut,
    DashboardOut,
    TopSellerOut,
    TopSellerPeriod,
)
from shopdash.services import reporting
from shopdash.store.gateway import INVENTORY, SALES, RemoteStore, StoreContext, StoreError

router = APIRouter(prefix="/reports", tags=["Reports"])


def _load_collections(store: RemoteStore, ctx: StoreContext):
    try:
        products = store.query_rows(ctx, INVENTORY, order_by="name")
        sales = store.query_rows(ctx, SALES, order_by="-sale_date")
    except StoreError as exc:
        raise to_http_error(exc) from exc
    return products, sales


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    products, sales = _load_collections(store, ctx)
    snapshot = reporting.build_dashboard(products, sales, now, top_limit=settings.top_sellers_limit)
    return DashboardOut(
        year=snapshot.year,
        total_stock=snapshot.total_stock,
        total_inventory_value=snapshot.total_inventory_value,
        current_year_total_sales=snapshot.current_year_total_sales,
        current_year_total_profit=snapshot.current_year_total_profit,
        current_year_total_units_sold=snapshot.current_year_total_units_sold,
        low_stock_products=[product_out(p) for p in snapshot.low_stock_products],
        category_distribution=[CategorySliceOut.model_validate(s) for s in snapshot.category_distribution],
        top_sellers_month=[TopSellerOut.model_validate(t) for t in snapshot.top_sellers_month],
        top_sellers_year=[TopSellerOut.model_validate(t) for t in snapshot.top_sellers_year],
        display=snapshot.display,
    )


@router.get("/top-sellers", response_model=list[TopSellerOut])
def top_sellers(
    period: TopSellerPeriod = Query(default="current_month"),
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    try:
        sales = store.query_rows(ctx, SALES)
    except StoreError as exc:
        raise to_http_error(exc) from exc
    ranked = reporting.top_sellers(sales, period, now, limit=settings.top_sellers_limit)
    return [TopSellerOut.model_validate(t) for t in ranked]


@router.get("/sales/export/csv")
def export_sales_csv(
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    _, sales = _load_collections(store, ctx)
    filename = reporting.sales_report_filename(now)
    return Response(
        content=reporting.build_sales_report_csv(sales, now),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
