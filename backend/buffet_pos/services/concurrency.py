# Overview: Row locking, atomic counter expressions and retry helpers shared by the sale flows.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import case
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def clamped_add(column, delta: int):
    """
    SQL expression for `column + delta` floored at zero.

    Evaluated by the database inside the UPDATE, so concurrent writers never
    overwrite each other's result with a stale client-side value.
    """
    return case((column + delta < 0, 0), else_=column + delta)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (version_id conflicts). Anything else propagates on the first failure.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent update conflict (attempt %s/%s): %s", attempt + 1, attempts, exc
            )
            time.sleep(backoff_base * (2 ** attempt))
