from fastapi import APIRouter, Depends, status

from shopdash.api.deps import get_store, get_store_context
from shopdash.api.errors import to_http_error
from shopdash.schemas.inventory import (
    ProductCreate,
    ProductOut,
    ProductUpdate,
    StockReconcileOut,
    StockReconcileRequest,
)
from shopdash.services import catalog
from shopdash.services.errors import InventoryError
from shopdash.services.sales import reconcile_product_stock
from shopdash.store.gateway import RemoteStore, Row, StoreContext, StoreError

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def product_out(row: Row) -> ProductOut:
    return ProductOut.model_validate({**row, "is_low_stock": catalog.is_low_stock(row)})


@router.get("/products", response_model=list[ProductOut])
def list_products(
    search: str | None = None,
    low_stock_only: bool = False,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        products = catalog.list_products(store, ctx, search=search, low_stock_only=low_stock_only)
    except StoreError as exc:
        raise to_http_error(exc) from exc
    return [product_out(p) for p in products]


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        product = catalog.create_product(store, ctx, payload.model_dump())
    except StoreError as exc:
        raise to_http_error(exc) from exc
    return product_out(product)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        product = catalog.get_product(store, ctx, product_id)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return product_out(product)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    changes = payload.model_dump(exclude_none=True)
    try:
        product = catalog.update_product(store, ctx, product_id, changes)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return product_out(product)


@router.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: int,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        product = catalog.delete_product(store, ctx, product_id)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return product_out(product)


@router.post("/products/{product_id}/reconcile", response_model=StockReconcileOut)
def reconcile_stock(
    product_id: int,
    payload: StockReconcileRequest,
    ctx: StoreContext = Depends(get_store_context),
    store: RemoteStore = Depends(get_store),
):
    try:
        stock_quantity = reconcile_product_stock(store, ctx, product_id, payload.stocked_quantity)
    except (InventoryError, StoreError) as exc:
        raise to_http_error(exc) from exc
    return StockReconcileOut(product_id=product_id, stock_quantity=stock_quantity)
