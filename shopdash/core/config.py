import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    secret_key: str
    algorithm: str
    issuer: str
    audience: str | None
    cors_origins: tuple[str, ...]
    database_url: str
    database_echo: bool
    database_sslmode: str | None
    store_backend: str
    currency_symbol: str
    top_sellers_limit: int
    log_level: str
    log_file: str | None


settings = Settings(
    app_name=os.getenv("APP_NAME", "Shop Inventory Dashboard API"),
    secret_key=os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_CHAR_MIN_SECRET_KEY"),
    algorithm=os.getenv("ALGORITHM", "HS256"),
    issuer=os.getenv("TOKEN_ISSUER", "shopdash-auth"),
    audience=os.getenv("TOKEN_AUDIENCE") or None,
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:8080").split(",")
        if origin.strip()
    ),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./shopdash.db"),
    database_echo=_env_bool("DATABASE_ECHO", False),
    database_sslmode=os.getenv("DATABASE_SSLMODE", "require") or None,
    store_backend=os.getenv("STORE_BACKEND", "sql").strip().lower(),
    currency_symbol=os.getenv("CURRENCY_SYMBOL", "Ksh"),
    top_sellers_limit=_env_int("TOP_SELLERS_LIMIT", 10, min_value=1),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    log_file=os.getenv("LOG_FILE") or None,
)
