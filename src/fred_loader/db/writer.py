"""Buffered row writer bound to one destination table."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import Table, insert
from sqlalchemy.engine import Engine

from fred_loader.db.session import SINK_ERRORS
from fred_loader.errors import CommitError, WriteError
from fred_loader.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="writer")


class TableWriter:
    """
    Collects rows for ``table`` and inserts them in one transaction.

    Rows handed to ``write`` are only buffered; nothing is visible at the
    sink until ``insert`` succeeds. ``close`` discards whatever is still
    buffered, so a writer abandoned mid-load leaves the table untouched.
    Use it as a context manager to guarantee ``close`` runs.
    """

    def __init__(self, table: Table, engine: Engine) -> None:
        self.table = table
        self.engine = engine
        self._columns = [c.name for c in table.columns]
        self._buffer: List[Dict[str, Any]] = []
        self._closed = False

    def __enter__(self) -> "TableWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(rollback_reason=str(exc) if exc is not None else None)

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, row: Mapping[str, Any]) -> None:
        """Buffer one row; its keys must match the table's columns exactly."""
        if self._closed:
            raise WriteError(f"writer for table {self.table.fullname} is closed")
        missing = [c for c in self._columns if c not in row]
        unknown = [k for k in row if k not in self._columns]
        if missing or unknown:
            raise WriteError(
                f"row does not match table {self.table.fullname}: missing={missing} unknown={unknown}"
            )
        self._buffer.append({c: row[c] for c in self._columns})

    def insert(self) -> int:
        """Insert every buffered row as a single batch and return how many were sent."""
        if self._closed:
            raise CommitError(f"writer for table {self.table.fullname} is closed")
        if not self._buffer:
            logger.warning(f"Nothing to insert into '{self.table.fullname}'")
            return 0

        count = len(self._buffer)
        logger.info(f"Inserting {count} rows into '{self.table.fullname}'")
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(self.table), self._buffer)
        except SINK_ERRORS as exc:
            logger.error(f"Insert into '{self.table.fullname}' failed: {exc}")
            raise CommitError(f"insert into {self.table.fullname} failed: {exc}") from exc

        self._buffer.clear()
        return count

    def close(self, rollback_reason: Optional[str] = None) -> None:
        """Release the writer, discarding rows that were never inserted."""
        if self._closed:
            return
        if self._buffer:
            logger.warning(
                f"Discarding {len(self._buffer)} uninserted rows for '{self.table.fullname}'"
                + (f": {rollback_reason}" if rollback_reason else "")
            )
            self._buffer.clear()
        self._closed = True
