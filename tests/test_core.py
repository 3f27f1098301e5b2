from datetime import date
from decimal import Decimal

import pytest
from jose import jwt
from sqlalchemy.pool import StaticPool

from shopdash.core.config import settings
from shopdash.core.formatting import format_amount, format_currency, format_date, format_report_date
from shopdash.core.security import TokenError, create_access_token, subject_from_token
from shopdash.db.database import create_db_engine


@pytest.mark.parametrize(
    "value, expected",
    [(Decimal("2.005"), "2.01"), (Decimal("2.004"), "2.00"), (3, "3.00"), ("0", "0.00")],
)
def test_format_amount_rounds_half_up(value, expected):
    assert format_amount(value) == expected


def test_format_currency_groups_thousands():
    assert format_currency(Decimal("1234.5")) == "Ksh 1,234.50"
    assert format_currency(Decimal("7"), symbol="$") == "$ 7.00"


def test_dates():
    assert format_date(date(2024, 6, 1)) == "Jun 1, 2024"
    assert format_report_date(date(2024, 6, 1)) == "6/1/2024"


def test_access_token_round_trip():
    assert subject_from_token(create_access_token("user-9")) == "user-9"


def test_expired_token_is_rejected():
    with pytest.raises(TokenError):
        subject_from_token(create_access_token("user-9", expires_minutes=-1))


def test_non_access_token_is_rejected():
    token = jwt.encode(
        {"sub": "user-9", "type": "refresh", "iss": settings.issuer},
        settings.secret_key,
        algorithm=settings.algorithm,
    )
    with pytest.raises(TokenError):
        subject_from_token(token)


def test_in_memory_sqlite_engine_shares_one_connection():
    engine = create_db_engine("sqlite://")

    assert isinstance(engine.pool, StaticPool)


def test_file_sqlite_engine_uses_a_regular_pool(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'shop.db'}")

    assert not isinstance(engine.pool, StaticPool)
    engine.dispose()
