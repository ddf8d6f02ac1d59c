# Overview: Locking, transaction-start and retry helpers shared by the write services.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError, UnavailableError
from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write_transaction()
    takes the database write lock up front instead.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the write transaction before reading rows it depends on.

    On SQLite this issues BEGIN IMMEDIATE so concurrent writers serialize on
    the database lock instead of both reading the same stock level.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locks, timeouts, dropped connections) and
    StaleDataError (optimistic locking conflicts). Every failed attempt is
    rolled back in full. When attempts run out, OperationalError surfaces as
    UnavailableError and StaleDataError as ConflictError.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt < attempts - 1:
                logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
                time.sleep(backoff_base * (2 ** attempt))
                continue
            if isinstance(exc, StaleDataError):
                raise ConflictError("Record was modified concurrently; retry the request") from exc
            raise UnavailableError(f"Database unavailable: {exc.orig if hasattr(exc, 'orig') else exc}") from exc
        except Exception:
            db.session.rollback()
            raise
