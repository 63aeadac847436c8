"""AdPulse — Bulk Idempotent Upsert.

One INSERT ... ON CONFLICT DO UPDATE per batch, keyed on the table's natural
key. Conflicting rows take the new values (replace, not accumulate).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence, Type

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from adpulse.models.sync_models import UpsertResult
from adpulse.core.logging import get_logger

logger = get_logger("store.upsert")

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_rows(
    engine: Engine,
    model: Type[SQLModel],
    rows: List[Dict[str, Any]],
    conflict_keys: Sequence[str],
) -> UpsertResult:
    """Upsert ``rows`` into ``model``'s table in a single statement.

    Store errors are logged and returned on the result, never raised.
    """
    table = model.__table__
    result = UpsertResult(table=table.name)
    if not rows:
        return result

    dialect = engine.dialect.name
    if dialect not in _DIALECT_INSERTS:
        logger.error(
            f"Upsert into {table.name} skipped: dialect '{dialect}' not supported",
            extra={"table": table.name, "rows": len(rows)},
        )
        result.error = f"Upsert not supported for dialect '{dialect}'"
        return result

    now = datetime.now(timezone.utc)
    values = [{**row, "updated_at": now} for row in rows]

    stmt = _DIALECT_INSERTS[dialect](table).values(values)
    update_cols = {
        col.name: stmt.excluded[col.name]
        for col in table.columns
        if col.name not in conflict_keys and not col.primary_key
    }
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_keys), set_=update_cols)

    try:
        with engine.begin() as conn:
            conn.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(
            f"Upsert into {table.name} failed: {e}",
            extra={"table": table.name, "rows": len(rows)},
        )
        result.error = str(e)
        return result

    result.rows = len(rows)
    logger.info(
        f"Upserted {len(rows)} rows into {table.name}",
        extra={"table": table.name, "rows": len(rows)},
    )
    return result
