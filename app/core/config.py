# app/core/config.py

import os
import logging
from dotenv import load_dotenv

from app.constants.sequence_keys import SequenceKey

logger = logging.getLogger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./stockledger.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# STOCK ENGINE
# =====================================================
# Upper bound on row-lock waits inside a movement transaction (Postgres only).
STOCK_LOCK_TIMEOUT_MS = int(os.getenv("STOCK_LOCK_TIMEOUT_MS", 5000))
if STOCK_LOCK_TIMEOUT_MS <= 0:
    raise ValueError("STOCK_LOCK_TIMEOUT_MS must be a positive integer")

MOVEMENT_SEQUENCE_KEY = os.getenv(
    "MOVEMENT_SEQUENCE_KEY", SequenceKey.STOCK_MOVEMENT.value
).strip().upper()
if not MOVEMENT_SEQUENCE_KEY.isalpha():
    raise ValueError("MOVEMENT_SEQUENCE_KEY must be alphabetic")

# =====================================================
# JWT / CALLER IDENTITY
# =====================================================
JWT_ACCESS_SECRET_KEY = os.getenv("JWT_ACCESS_SECRET_KEY")
if not JWT_ACCESS_SECRET_KEY:
    raise ValueError("JWT_ACCESS_SECRET_KEY must be set")

JWT_ALGORITHM = "HS256"

# Tokens are minted by the identity service for this API only.
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "stock-ledger")
JWT_ISSUER = os.getenv("JWT_ISSUER") or None

ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 15)
)
