from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite


def dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


def insert_ignore(db: AsyncSession, model, values: dict):
    """INSERT ... ON CONFLICT DO NOTHING against any unique index of the table."""
    name = dialect_name(db)
    if name == "postgresql":
        stmt = postgresql.insert(model)
    elif name == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise RuntimeError(f"Unsupported dialect for upsert: {name}")
    return stmt.values(**values).on_conflict_do_nothing()
