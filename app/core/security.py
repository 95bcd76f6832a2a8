# app/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from fastapi import HTTPException, status

from app.core.config import (
    JWT_ACCESS_SECRET_KEY,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)

REQUIRED_CLAIMS = ("sub", "tenant_id")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

# =====================================================
# ACCESS TOKEN
# =====================================================
def create_access_token(
    user_id: int,
    tenant_id: int,
    username: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a caller token. Used by tooling and tests; production tokens come from the identity service."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = {
        "sub": str(user_id),
        "tenant_id": tenant_id,
        "username": username,
        "type": "access",
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": expire,
    }
    if JWT_ISSUER:
        claims["iss"] = JWT_ISSUER

    return jwt.encode(claims, JWT_ACCESS_SECRET_KEY, algorithm=JWT_ALGORITHM)

# =====================================================
# DECODE + VALIDATE TOKEN
# =====================================================
def decode_access_token(token: str) -> dict:
    try:
        claims = jwt.decode(
            token,
            JWT_ACCESS_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    if claims.get("type") != "access":
        raise _unauthorized("Invalid token type")

    missing = [c for c in REQUIRED_CLAIMS if claims.get(c) is None]
    if missing:
        raise _unauthorized(f"Token is missing claims: {', '.join(missing)}")

    return claims
