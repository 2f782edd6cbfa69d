import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine

from .schema import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PLACEHOLDER = re.compile(r"\$(\d+)")


def bind_positional(sql: str, params: Sequence[Any]) -> Tuple[Any, Dict[str, Any]]:
    """
    Translate "$1".."$n" placeholders into SQLAlchemy named binds.

    Args:
        sql: SQL text using positional placeholders
        params: Positional values; params[0] binds to $1

    Returns:
        Tuple of (TextClause, bind values dict)
    """
    indexes = {int(m) for m in _PLACEHOLDER.findall(sql)}
    if indexes and max(indexes) > len(params):
        raise ValueError(
            f"Query references ${max(indexes)} but only {len(params)} parameters were given"
        )

    statement = text(_PLACEHOLDER.sub(lambda m: f":p{m.group(1)}", sql))
    values = {f"p{i}": value for i, value in enumerate(params, start=1) if i in indexes}
    return statement, values


class Transaction:
    """Synchronous statement runner bound to one open transaction."""

    def __init__(self, connection: Connection):
        self._conn = connection

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        statement, values = bind_positional(sql, params)
        result = self._conn.execute(statement, values)
        return [dict(row._mapping) for row in result]

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the number of affected rows."""
        statement, values = bind_positional(sql, params)
        return self._conn.execute(statement, values).rowcount


class QueryExecutor:
    """
    Parameterized SQL execution over a pooled SQLAlchemy engine.

    Every call runs on a worker thread and in its own transaction, so
    callers on the event loop never block on the database.
    """

    def __init__(self, engine: Engine):
        """
        Initialize executor.

        Args:
            engine: SQLAlchemy engine (owns the connection pool)
        """
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "QueryExecutor":
        """Create an executor with a new engine for the given URL."""
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
        return cls(engine)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a query and return all rows as dicts."""
        return await self.run_in_transaction(lambda tx: tx.fetch_all(sql, params))

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        """Run a query and return the first row, or None."""
        return await self.run_in_transaction(lambda tx: tx.fetch_one(sql, params))

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the number of affected rows."""
        return await self.run_in_transaction(lambda tx: tx.execute(sql, params))

    async def run_in_transaction(self, work: Callable[[Transaction], T]) -> T:
        """
        Run a unit of work inside a single transaction.

        The transaction commits when work returns and rolls back if it raises.

        Args:
            work: Callable receiving a Transaction; runs on a worker thread

        Returns:
            Whatever work returns
        """
        def _run() -> T:
            with self.engine.begin() as conn:
                return work(Transaction(conn))

        return await asyncio.to_thread(_run)

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            await self.fetch_one("SELECT 1 AS ok")
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def create_schema(self) -> None:
        """Create any missing tables (development and tests)."""
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
