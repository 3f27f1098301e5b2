class InventoryError(Exception):
    pass


class InvalidSale(InventoryError):
    pass


class ProductNotFound(InventoryError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class SaleNotFound(InventoryError):
    def __init__(self, sale_id: int) -> None:
        super().__init__(f"Sale {sale_id} not found")
        self.sale_id = sale_id


class ProductInUse(InventoryError):
    def __init__(self, product_id: int, sale_count: int) -> None:
        super().__init__(f"Product {product_id} is referenced by {sale_count} sale(s)")
        self.product_id = product_id
        self.sale_count = sale_count


class InsufficientStock(InventoryError):
    def __init__(self, product_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class PartialFailure(InventoryError):
    """The primary write went through but the follow-up stock write did not.

    Returned as a warning rather than raised: the data can be repaired with a
    stock reconciliation.
    """

    def __init__(self, message: str, product_id: int | None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.product_id = product_id
        self.cause = cause
