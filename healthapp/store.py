"""
Data access for the credential store and the other collections.

Every function takes the engine as its first argument and returns plain
dict rows (``.mappings()``), never ORM objects.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, insert, or_, select, update

from healthapp.database import users, utcnow

Row = Dict[str, Any]


# ── Generic helpers ──────────────────────────────────────────────────

def _where(table, filters: Dict[str, Any]):
    return [table.c[col] == value for col, value in filters.items()]


def fetch_one(engine, table, **filters) -> Optional[Row]:
    stmt = select(table).where(*_where(table, filters)).limit(1)
    with engine.connect() as conn:
        row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def fetch_all(
    engine,
    table,
    filters: Optional[Dict[str, Any]] = None,
    conditions: Iterable = (),
    order_by=None,
    limit: Optional[int] = None,
) -> List[Row]:
    """Select rows matching equality *filters* plus extra SQL *conditions*."""
    stmt = select(table).where(*_where(table, filters or {}), *conditions)
    if order_by is not None:
        stmt = stmt.order_by(order_by)
    if limit is not None:
        stmt = stmt.limit(limit)
    with engine.connect() as conn:
        return [dict(r) for r in conn.execute(stmt).mappings().all()]


def insert_row(engine, table, values: Row) -> int:
    now = utcnow()
    values = {"created_at": now, "updated_at": now, **values}
    with engine.begin() as conn:
        result = conn.execute(insert(table).values(**values))
    return result.inserted_primary_key[0]


def update_rows(engine, table, values: Row, **filters) -> int:
    """Update rows matching *filters*; return the number of matched rows."""
    values = {**values, "updated_at": utcnow()}
    stmt = update(table).where(*_where(table, filters)).values(**values)
    with engine.begin() as conn:
        return conn.execute(stmt).rowcount


def delete_rows(engine, table, **filters) -> int:
    stmt = delete(table).where(*_where(table, filters))
    with engine.begin() as conn:
        return conn.execute(stmt).rowcount


def count_rows(engine, table, **filters) -> int:
    stmt = select(func.count()).select_from(table).where(*_where(table, filters))
    with engine.connect() as conn:
        return conn.execute(stmt).scalar_one()


def search_condition(table, term: str, *columns: str):
    """Case-insensitive substring match over *columns*."""
    pattern = f"%{term.lower()}%"
    return or_(*(func.lower(table.c[col]).like(pattern) for col in columns))


def rows_by_id(engine, table, ids: Iterable[Optional[int]]) -> Dict[int, Row]:
    """Batch lookup used to populate related rows; missing ids are absent."""
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    rows = fetch_all(engine, table, conditions=[table.c.id.in_(wanted)])
    return {r["id"]: r for r in rows}


# ── Credential store ─────────────────────────────────────────────────

def find_user_by_email(engine, email: str) -> Optional[Row]:
    return fetch_one(engine, users, email=email)


def find_user_by_id(engine, user_id: int) -> Optional[Row]:
    return fetch_one(engine, users, id=user_id)


def create_user(engine, values: Row) -> int:
    return insert_row(engine, users, values)
