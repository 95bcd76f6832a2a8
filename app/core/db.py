# app/core/db.py

import ssl
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import event

from app.core.config import (
    DATABASE_URL,
    DB_TYPE,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_SSL_VERIFY,
    DB_ECHO_POOL,
    APP_ENV,
)

# =====================================================
# BASE
# =====================================================
Base = declarative_base()

# =====================================================
# SQLITE FK ENFORCEMENT
# =====================================================
def enable_sqlite_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

# =====================================================
# ENGINE FACTORY
# =====================================================
def _postgres_options() -> tuple[dict, dict]:
    ssl_ctx = ssl.create_default_context()

    if not DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    connect_args = {
        "ssl": ssl_ctx,
        # Disable prepared statements (pgbouncer transaction pooling)
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "server_settings": {"application_name": "stock-ledger"},
    }

    # Each movement holds up to three row locks; the pool must cover the
    # concurrent writers or they queue on the pool instead of the rows.
    pool_args = {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }
    return connect_args, pool_args


def build_engine(url: str, db_type: str) -> AsyncEngine:
    if db_type == "postgres":
        connect_args, pool_args = _postgres_options()
    elif db_type == "sqlite":
        connect_args, pool_args = {"check_same_thread": False}, {}
    else:
        raise ValueError(f"Unsupported DB_TYPE: {db_type}")

    new_engine = create_async_engine(
        url,
        echo=False,                # NEVER enable in prod
        echo_pool=DB_ECHO_POOL,    # debugging only
        connect_args=connect_args,
        **pool_args,
    )

    if db_type == "sqlite":
        event.listen(new_engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    return new_engine


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )

# =====================================================
# ENGINE / SESSION
# =====================================================
engine = build_engine(DATABASE_URL, DB_TYPE)
AsyncSessionLocal = build_session_factory(engine)

# =====================================================
# DEPENDENCY
# =====================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

# =====================================================
# MODEL IMPORT
# =====================================================
import app.models  # noqa

# =====================================================
# DEV ONLY: AUTO CREATE TABLES
# =====================================================
async def init_models():
    if APP_ENV != "development":
        raise RuntimeError("init_models() is forbidden outside development")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
