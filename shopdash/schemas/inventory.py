from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

TopSellerPeriod = Literal["current_month", "current_year"]


class ProductCreate(BaseModel):
    name: str = Field(min_length=2, max_length=160)
    category: str = Field(min_length=1, max_length=80)
    price: Decimal = Field(ge=Decimal("0.01"), decimal_places=2)
    cost: Decimal = Field(ge=Decimal("0.01"), decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    reorder_level: int = Field(default=5, ge=1)

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=160)
    category: str | None = Field(default=None, min_length=1, max_length=80)
    price: Decimal | None = Field(default=None, ge=Decimal("0.01"), decimal_places=2)
    cost: Decimal | None = Field(default=None, ge=Decimal("0.01"), decimal_places=2)
    stock_quantity: int | None = Field(default=None, ge=0)
    reorder_level: int | None = Field(default=None, ge=1)

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class ProductOut(BaseModel):
    id: int
    name: str
    category: str
    price: Decimal
    cost: Decimal
    stock_quantity: int
    reorder_level: int
    is_low_stock: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class StockReconcileRequest(BaseModel):
    stocked_quantity: int = Field(ge=0, description="Units taken into stock over the product's lifetime")


class StockReconcileOut(BaseModel):
    product_id: int
    stock_quantity: int


class SaleCreateRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    sale_date: date = Field(default_factory=date.today)


class SaleUpdateRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    sale_date: date


class SaleOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    cost: Decimal
    quantity: int
    total_amount: Decimal
    profit: Decimal
    sale_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class WarningOut(BaseModel):
    message: str
    product_id: int | None
    detail: str | None = None


class SaleMutationOut(BaseModel):
    sale: SaleOut | None
    product_id: int
    stock_quantity: int | None
    warnings: list[WarningOut]


class CategorySliceOut(BaseModel):
    name: str
    value: int
    color: str

    model_config = {"from_attributes": True}


class TopSellerOut(BaseModel):
    name: str
    amount: Decimal

    model_config = {"from_attributes": True}


class DashboardOut(BaseModel):
    year: int
    total_stock: int
    total_inventory_value: Decimal
    current_year_total_sales: Decimal
    current_year_total_profit: Decimal
    current_year_total_units_sold: int
    low_stock_products: list[ProductOut]
    category_distribution: list[CategorySliceOut]
    top_sellers_month: list[TopSellerOut]
    top_sellers_year: list[TopSellerOut]
    display: dict[str, str]

    model_config = {"from_attributes": True}
