from datetime import datetime

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from shopdash.core.config import settings
from shopdash.core.security import TokenError, subject_from_token
from shopdash.db.database import get_db
from shopdash.models.user import User
from shopdash.services.account import get_or_create_user
from shopdash.store.gateway import RemoteStore, StoreContext
from shopdash.store.memory import MemoryStore
from shopdash.store.sql import SqlStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

memory_store = MemoryStore()


def _clean_candidate(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = value.strip().strip("\"'").strip()
    if not cleaned:
        return None
    # Normalize accidental duplicated prefixes like: "Bearer Bearer <jwt>"
    while cleaned.lower().startswith("bearer "):
        cleaned = cleaned[7:].strip().strip("\"'").strip()
    return cleaned or None


def extract_bearer_token(request: Request, token: str | None = None) -> str | None:
    raw_token = _clean_candidate(token)
    if raw_token:
        return raw_token
    auth_header = request.headers.get("authorization", "").strip()
    parts = auth_header.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return _clean_candidate(parts[1])
    return None


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = extract_bearer_token(request, token)
    if not raw_token:
        raise credentials_exception
    try:
        user_id = subject_from_token(raw_token)
    except TokenError:
        raise credentials_exception from None

    # Identities are issued elsewhere; the first authenticated call provisions the owner row.
    return get_or_create_user(db, user_id)


def get_store(db: Session = Depends(get_db)) -> RemoteStore:
    if settings.store_backend == "memory":
        return memory_store
    return SqlStore(db)


def get_store_context(current_user: User = Depends(get_current_user)) -> StoreContext:
    return StoreContext(user_id=current_user.id)


def get_now() -> datetime:
    return datetime.now()
