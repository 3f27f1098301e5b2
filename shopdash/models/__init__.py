from shopdash.models.inventory import Product, Sale
from shopdash.models.user import User

__all__ = [
    "Product",
    "Sale",
    "User",
]
