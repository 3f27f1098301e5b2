from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from shopdash.core.config import settings

CENT = Decimal("0.01")


def quantize_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal | int | float | str) -> str:
    return f"{quantize_money(value):.2f}"


def format_currency(value: Decimal | int | float | str, symbol: str | None = None) -> str:
    return f"{symbol or settings.currency_symbol} {quantize_money(value):,.2f}"


def format_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_report_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"
