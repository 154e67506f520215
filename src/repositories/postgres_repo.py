"""PostgreSQL repository using SQLAlchemy Core."""

from typing import List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine

from utils.validators import ensure_identifier


class PostgresRepository:
    """Thin wrapper to keep SQL organized and parameterized."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_all(self, query: str, params: Optional[dict] = None) -> List[dict]:
        """Execute a SELECT and return every row as a dict."""
        with self.engine.connect() as conn:
            result = conn.execute(text(query), params or {})
            return [dict(row._mapping) for row in result]

    def replace_all(self, table: str, rows: Sequence[dict]) -> int:
        """
        Overwrite a table's contents in one transaction.

        Readers see either the previous snapshot or the new one, never a mix.
        """
        ensure_identifier(table, "table")
        with self.engine.begin() as conn:
            conn.execute(text(f"DELETE FROM {table}"))
            if rows:
                columns = [ensure_identifier(column, "column") for column in rows[0]]
                stmt = text(
                    f"INSERT INTO {table} ({', '.join(columns)}) "
                    f"VALUES ({', '.join(':' + column for column in columns)})"
                )
                conn.execute(stmt, list(rows))
        return len(rows)
