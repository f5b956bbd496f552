"""
Persistence for client cards.

``ClientStore`` is the only code that talks to the ``clients`` table.
Outside of a unit of work every method opens its own connection,
commits and closes it again.  ``run_atomically`` hands the caller a
store bound to a single connection inside ``BEGIN IMMEDIATE`` so that
a read, the recomputation and all resulting writes either land
together or not at all.

Writers are serialized twice: by a process‑wide lock, and by SQLite's
reserved lock (taken by ``BEGIN IMMEDIATE``) for other processes using
the same database file.

All ``sqlite3`` errors are re‑raised as ``InternalStoreError``.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, TypeVar

from shiptivity_api.app.core.config import settings
from shiptivity_api.app.core.db import get_connection
from shiptivity_api.app.core.errors import (
    ClientNotFoundError,
    InternalStoreError,
    InvalidStatusError,
)
from shiptivity_api.app.schemas.client import STATUSES, ClientRead


logger = logging.getLogger(__name__)

T = TypeVar("T")

# One lock for all three lanes.
_WRITE_LOCK = threading.Lock()


class ClientStore:
    """Read and write client records."""

    def __init__(
        self,
        connect: Callable[[], sqlite3.Connection] = get_connection,
        connection: Optional[sqlite3.Connection] = None,
    ) -> None:
        self._connect = connect
        self._connection = connection

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        if self._connection is not None:
            try:
                yield self._connection.cursor()
            except sqlite3.Error as exc:
                raise InternalStoreError(f"Database error: {exc}") from exc
            return

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise InternalStoreError(f"Cannot open database: {exc}") from exc
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.Error as exc:
            raise InternalStoreError(f"Database error: {exc}") from exc
        finally:
            conn.close()

    def get_all(self) -> List[ClientRead]:
        """Return every client ordered by id."""
        with self._cursor() as cursor:
            rows = cursor.execute("SELECT * FROM clients ORDER BY id").fetchall()
            return [self._row_to_client(row) for row in rows]

    def get_by_status(self, status: str) -> List[ClientRead]:
        """Return one lane, top of the swimlane first."""
        if status not in STATUSES:
            raise InvalidStatusError(
                "Status can only be one of the following: [backlog | in-progress | complete]."
            )
        with self._cursor() as cursor:
            rows = cursor.execute(
                "SELECT * FROM clients WHERE status = ? ORDER BY priority, id",
                (status,),
            ).fetchall()
            return [self._row_to_client(row) for row in rows]

    def get_by_id(self, client_id: int) -> ClientRead:
        with self._cursor() as cursor:
            row = cursor.execute(
                "SELECT * FROM clients WHERE id = ? LIMIT 1", (client_id,)
            ).fetchone()
            if not row:
                raise ClientNotFoundError("Cannot find client with that id.")
            return self._row_to_client(row)

    def update_status_and_priority(self, client_id: int, status: str, priority: int) -> None:
        """Write the lane position of a single client."""
        with self._cursor() as cursor:
            cursor.execute(
                "UPDATE clients SET status = ?, priority = ? WHERE id = ?",
                (status, priority, client_id),
            )
            if cursor.rowcount == 0:
                raise ClientNotFoundError("Cannot find client with that id.")

    def run_atomically(self, work: Callable[["ClientStore"], T]) -> T:
        """Run ``work`` as a single all‑or‑nothing unit.

        ``work`` receives a store bound to one connection with an open
        ``BEGIN IMMEDIATE`` transaction.  The transaction commits when
        ``work`` returns and rolls back when it raises; the exception
        is then propagated unchanged.  Failures to take the write lock
        within ``settings.db_timeout``, or to begin, commit or roll back
        the transaction, surface as ``InternalStoreError``.

        Parameters
        ----------
        work : Callable[[ClientStore], T]
            Unit of work; may read and write through the bound store.

        Returns
        -------
        T
            Whatever ``work`` returned.
        """
        if self._connection is not None:
            # Already inside a unit of work; join it.
            return work(self)

        if not _WRITE_LOCK.acquire(timeout=settings.db_timeout):
            logger.error("Timed out after %ss waiting for the client write lock", settings.db_timeout)
            raise InternalStoreError("Timed out waiting for another client update to finish.")
        try:
            try:
                conn = self._connect()
            except sqlite3.Error as exc:
                raise InternalStoreError(f"Cannot open database: {exc}") from exc
            # Transactions are managed explicitly below.
            conn.isolation_level = None
            try:
                try:
                    conn.execute("BEGIN IMMEDIATE")
                except sqlite3.Error as exc:
                    logger.exception("Could not start client transaction")
                    raise InternalStoreError(f"Cannot start transaction: {exc}") from exc
                try:
                    result = work(ClientStore(self._connect, connection=conn))
                except BaseException:
                    self._rollback(conn)
                    raise
                try:
                    conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    logger.exception("Could not commit client transaction")
                    self._rollback(conn)
                    raise InternalStoreError(f"Cannot commit transaction: {exc}") from exc
                return result
            finally:
                conn.close()
        finally:
            _WRITE_LOCK.release()

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        """Roll back an open transaction.

        A failed rollback is raised as ``InternalStoreError`` chained to
        the rollback error; the original exception stays available as
        its ``__context__``.  Closing the connection afterwards discards
        whatever SQLite still holds uncommitted.
        """
        try:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.exception("Could not roll back client transaction")
            raise InternalStoreError(f"Cannot roll back transaction: {exc}") from exc

    @staticmethod
    def _row_to_client(row: sqlite3.Row) -> ClientRead:
        """Convert a database row to a ClientRead schema instance."""
        return ClientRead(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            status=row["status"],
            priority=row["priority"],
        )
