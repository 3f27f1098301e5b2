from datetime import date

from fastapi import APIRouter, Depends, Query, status

from shopdash.api.deps import get_store, get_store_context
from shopdash.api.errors import to_http_error
from shopdash.schemas.inventory import (
    SaleCreateRequest,
    SaleMutationOut,
    SaleOut,
    SaleUpdateRequest,
    WarningOut,
)
from shopdash.services import sales as sales_service
from shopdash.services.errors import InventoryError
from shopdash.services.reporting import search_sales
from shopdash.store.gateway import SALES, RemoteStore, StoreContext, StoreError

router = APIRouter(prefix="/sales", tags=["Sales"])


def _mutation_out(outcome: sales_service.SaleOutcome) -> SaleMutationOut:
    return SaleMutationOut(
        sale=SaleOut.model_validate(outcome.sale) if outcome.sale else None,
        product_id=outcome.product_id,
        stock_quantity=outcome.stock_quantity,
        warnings=[
            WarningOut(
                message=warning.message,
                product_id=warning.product_id,
                detail=str(warning.cause) if warning.cause else None,
            )
            for warning in outcome.warnings
        ],
    )


@router.get("", response_model=list[SaleOut])
def list_sales(
    search: str | None = None,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        rows = store.query_rows(ctx, SALES, order_by="-sale_date")
    except StoreError as exc:
        raise to_http_error(exc) from exc
    return [SaleOut.model_validate(row) for row in search_sales(rows, search, start_date, end_date)]


@router.post("", response_model=SaleMutationOut, status_code=status.HTTP_201_CREATED)
def record_sale(
    payload: SaleCreateRequest,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        outcome = sales_service.record_sale(store, ctx, payload.product_id, payload.quantity, payload.sale_date)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return _mutation_out(outcome)


@router.patch("/{sale_id}", response_model=SaleMutationOut)
def edit_sale(
    sale_id: int,
    payload: SaleUpdateRequest,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        outcome = sales_service.edit_sale(
            store,
            ctx,
            sale_id,
            payload.product_id,
            payload.quantity,
            payload.sale_date,
        )
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return _mutation_out(outcome)


@router.delete("/{sale_id}", response_model=SaleMutationOut)
def delete_sale(
    sale_id: int,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        outcome = sales_service.delete_sale(store, ctx, sale_id)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return _mutation_out(outcome)
