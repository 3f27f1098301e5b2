import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopdash.api.routes.account import router as account_router
from shopdash.api.routes.inventory import router as inventory_router
from shopdash.api.routes.reports import router as reports_router
from shopdash.api.routes.sales import router as sales_router
from shopdash.core.config import settings
from shopdash.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


class ScopedCORSMiddleware(CORSMiddleware):
    """CORS for the dashboard API, leaving paths that answer preflight themselves alone."""

    def __init__(self, app, exclude_prefixes: tuple[str, ...] = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.exclude_prefixes = exclude_prefixes

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.exclude_prefixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    logger.info("%s starting (store backend: %s)", settings.app_name, settings.store_backend)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    ScopedCORSMiddleware,
    exclude_prefixes=("/account",),
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(inventory_router)
app.include_router(sales_router)
app.include_router(reports_router)
app.include_router(account_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
