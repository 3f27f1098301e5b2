"""Dashboard figures derived from the product and sale collections."""

import csv
import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from shopdash.core.formatting import (
    format_amount,
    format_currency,
    format_date,
    format_report_date,
    quantize_money,
)
from shopdash.services.catalog import is_low_stock

CATEGORY_COLORS = ("#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#A569BD")
TOP_SELLER_NAME_LENGTH = 10
ELLIPSIS = "…"
CSV_HEADER = ["Date", "Product Name", "Quantity", "Unit Price", "Total Amount", "Profit"]

Period = Literal["current_month", "current_year"]


@dataclass
class CategorySlice:
    name: str
    value: int
    color: str


@dataclass
class TopSeller:
    name: str
    amount: Decimal


@dataclass
class DashboardSnapshot:
    year: int
    total_stock: int
    total_inventory_value: Decimal
    current_year_total_sales: Decimal
    current_year_total_profit: Decimal
    current_year_total_units_sold: int
    low_stock_products: list[Mapping[str, Any]]
    category_distribution: list[CategorySlice]
    top_sellers_month: list[TopSeller]
    top_sellers_year: list[TopSeller]
    display: dict[str, str] = field(default_factory=dict)


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _money(value: Any) -> Decimal:
    return Decimal(str(value))


def year_to_date(sales: Iterable[Mapping[str, Any]], now: date | datetime) -> list[Mapping[str, Any]]:
    return [s for s in sales if _as_date(s["sale_date"]).year == now.year]


def month_to_date(sales: Iterable[Mapping[str, Any]], now: date | datetime) -> list[Mapping[str, Any]]:
    return [s for s in year_to_date(sales, now) if _as_date(s["sale_date"]).month == now.month]


def low_stock_products(products: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return [p for p in products if is_low_stock(p)]


def category_distribution(products: Iterable[Mapping[str, Any]]) -> list[CategorySlice]:
    counts: dict[str, int] = {}
    for product in products:
        counts[product["category"]] = counts.get(product["category"], 0) + 1
    return [
        CategorySlice(name=name, value=value, color=CATEGORY_COLORS[idx % len(CATEGORY_COLORS)])
        for idx, (name, value) in enumerate(counts.items())
    ]


def chart_label(product_name: str) -> str:
    if len(product_name) > TOP_SELLER_NAME_LENGTH:
        return product_name[:TOP_SELLER_NAME_LENGTH] + ELLIPSIS
    return product_name


def top_sellers(
    sales: Iterable[Mapping[str, Any]],
    period: Period,
    now: date | datetime,
    limit: int = 10,
) -> list[TopSeller]:
    """Profit per product label for the period, best first.

    Sales are grouped by their chart label, so two products whose names
    truncate to the same label share one bar.
    """
    if period == "current_month":
        scoped = month_to_date(sales, now)
    elif period == "current_year":
        scoped = year_to_date(sales, now)
    else:
        raise ValueError(f"Unsupported period: {period}")

    grouped: dict[str, Decimal] = {}
    for sale in scoped:
        label = chart_label(sale["product_name"])
        grouped[label] = grouped.get(label, Decimal("0")) + _money(sale["profit"] or 0)
    ranked = sorted(grouped.items(), key=lambda item: item[1], reverse=True)
    return [TopSeller(name=name, amount=amount) for name, amount in ranked[:limit]]


def search_sales(
    sales: Iterable[Mapping[str, Any]],
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Mapping[str, Any]]:
    needle = (search or "").strip().lower()
    matched = []
    for sale in sales:
        if needle and needle not in sale["product_name"].lower():
            continue
        sold_on = _as_date(sale["sale_date"])
        if start and sold_on < start:
            continue
        if end and sold_on > end:
            continue
        matched.append(sale)
    matched.sort(key=lambda s: _as_date(s["sale_date"]), reverse=True)
    return matched


def build_dashboard(
    products: Sequence[Mapping[str, Any]],
    sales: Sequence[Mapping[str, Any]],
    now: date | datetime,
    top_limit: int = 10,
) -> DashboardSnapshot:
    ytd = year_to_date(sales, now)
    total_inventory_value = sum(
        (_money(p["cost"]) * int(p["stock_quantity"]) for p in products), Decimal("0")
    )
    total_sales = sum((_money(s["total_amount"]) for s in ytd), Decimal("0"))
    total_profit = sum((_money(s["profit"]) for s in ytd), Decimal("0"))
    snapshot = DashboardSnapshot(
        year=now.year,
        total_stock=sum(int(p["stock_quantity"]) for p in products),
        total_inventory_value=quantize_money(total_inventory_value),
        current_year_total_sales=quantize_money(total_sales),
        current_year_total_profit=quantize_money(total_profit),
        current_year_total_units_sold=sum(int(s["quantity"]) for s in ytd),
        low_stock_products=low_stock_products(products),
        category_distribution=category_distribution(products),
        top_sellers_month=top_sellers(sales, "current_month", now, limit=top_limit),
        top_sellers_year=top_sellers(sales, "current_year", now, limit=top_limit),
    )
    snapshot.display = {
        "total_inventory_value": format_currency(snapshot.total_inventory_value),
        "current_year_total_sales": format_currency(snapshot.current_year_total_sales),
        "current_year_total_profit": format_currency(snapshot.current_year_total_profit),
    }
    if sales:
        snapshot.display["last_sale_date"] = format_date(max(_as_date(s["sale_date"]) for s in sales))
    return snapshot


def profit_margin(total_profit: Decimal, total_amount: Decimal) -> str:
    if not total_amount:
        return "0.00%"
    return f"{format_amount(total_profit / total_amount * 100)}%"


def quote_field(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def build_sales_report_csv(sales: Iterable[Mapping[str, Any]], now: date | datetime) -> str:
    ytd = year_to_date(sales, now)
    total_qty = sum(int(s["quantity"]) for s in ytd)
    total_amount = sum((_money(s["total_amount"]) for s in ytd), Decimal("0"))
    total_profit = sum((_money(s["profit"]) for s in ytd), Decimal("0"))

    sio = io.StringIO()
    writer = csv.writer(sio, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for sale in ytd:
        amount = _money(sale["total_amount"])
        # Product names are always quoted.
        fields = [
            format_report_date(_as_date(sale["sale_date"])),
            quote_field(sale["product_name"]),
            str(sale["quantity"]),
            format_amount(amount / int(sale["quantity"])),
            format_amount(amount),
            format_amount(sale["profit"]),
        ]
        sio.write(",".join(fields) + "\n")
    writer.writerow([])
    writer.writerow(["TOTALS", "", total_qty, "", format_amount(total_amount), format_amount(total_profit)])
    writer.writerow([])
    writer.writerow(["SUMMARY INFORMATION"])
    writer.writerow(["Reporting Period", now.year])
    writer.writerow(["Total Products Sold", total_qty])
    writer.writerow(["Total Revenue", format_amount(total_amount)])
    writer.writerow(["Total Profit", format_amount(total_profit)])
    writer.writerow(["Profit Margin", profit_margin(total_profit, total_amount)])
    return sio.getvalue()


def sales_report_filename(now: date | datetime) -> str:
    return f"sales_report_{now.year}.csv"
