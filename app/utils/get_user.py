import logging
from dataclasses import dataclass

from fastapi import HTTPException, Header, status, Request

from app.core.security import decode_access_token

logger = logging.getLogger("auth.guard")


@dataclass(frozen=True)
class Caller:
    """Identity of whoever requested the movement, as asserted by the token issuer."""

    tenant_id: int
    user_id: int
    username: str


async def get_current_caller(
    request: Request,
    authorization: str | None = Header(None),
) -> Caller:
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ")[1].strip()
    payload = decode_access_token(token)

    try:
        caller = Caller(
            tenant_id=int(payload["tenant_id"]),
            user_id=int(payload["sub"]),
            username=str(payload.get("username") or payload["sub"]),
        )
    except (TypeError, ValueError):
        logger.warning("Malformed caller claims", extra={"sub": payload.get("sub")})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        )

    request.state.caller = caller
    return caller
