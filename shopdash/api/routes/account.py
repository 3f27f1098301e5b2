import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from shopdash.api.deps import get_store
from shopdash.core.security import TokenError, subject_from_token
from shopdash.db.database import get_db
from shopdash.schemas.account import DeleteAccountRequest, ErrorResponse, MessageResponse
from shopdash.services.account import AccountDeletionError, delete_user_account, user_exists
from shopdash.store.gateway import RemoteStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["Account"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=CORS_HEADERS,
    )


@router.api_route(
    "/delete",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def delete_account(
    request: Request,
    db: Session = Depends(get_db),
    store: RemoteStore = Depends(get_store),
):
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)
    if request.method != "POST":
        return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method Not Allowed")

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return _error(status.HTTP_401_UNAUTHORIZED, "Missing or invalid Authorization header")
    try:
        user_id = subject_from_token(auth_header[len("Bearer "):].strip())
    except TokenError:
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid user token")
    if not await run_in_threadpool(user_exists, db, user_id):
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid user token")

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")
    try:
        payload = DeleteAccountRequest.model_validate(body)
    except ValidationError:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing or mismatched user_id")
    if payload.user_id != user_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing or mismatched user_id")

    try:
        await run_in_threadpool(delete_user_account, db, user_id, store=store)
    except AccountDeletionError as exc:
        logger.error("account deletion for %s failed: %s", user_id, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Deletion failed: {exc}")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=MessageResponse(message="User deleted successfully").model_dump(),
        headers=CORS_HEADERS,
    )
