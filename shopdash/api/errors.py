from fastapi import HTTPException, status

from shopdash.services.errors import (
    InsufficientStock,
    InvalidSale,
    InventoryError,
    ProductInUse,
    ProductNotFound,
    SaleNotFound,
)
from shopdash.store.gateway import RowNotFound, StoreError


def to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, InsufficientStock):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Insufficient stock quantity",
                "product_id": exc.product_id,
                "requested": exc.requested,
                "available": exc.available,
            },
        )
    if isinstance(exc, InvalidSale):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, (ProductNotFound, SaleNotFound, RowNotFound)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ProductInUse):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product has recorded sales and cannot be deleted",
        )
    if isinstance(exc, StoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable, try again")
    if isinstance(exc, InventoryError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    raise exc
