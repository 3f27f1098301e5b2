from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from shopdash.core.config import settings


class TokenError(Exception):
    pass


def create_access_token(subject: str, expires_minutes: int = 60) -> str:
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "type": "access", "iss": settings.issuer, "exp": expires_at}
    if settings.audience:
        payload["aud"] = settings.audience
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
        options={"verify_aud": settings.audience is not None},
    )


def subject_from_token(token: str) -> str:
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise TokenError(str(exc)) from exc
    subject = payload.get("sub")
    if not subject or payload.get("type") != "access":
        raise TokenError("Token is not an access token")
    return str(subject)
