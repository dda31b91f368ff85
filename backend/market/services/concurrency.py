# Overview: Service-layer helpers for row locking and retrying conflicting writes.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking before a check-then-act sequence.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the version_id columns
    on Product and Account catch the conflicting write at flush instead.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_if=None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError
    (optimistic version conflicts). An IntegrityError is retried only when
    retry_if(exc) is true, e.g. a unique key that a concurrent insert took
    first. func must re-read whatever it validates, because each attempt
    starts from a rolled-back session.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError, IntegrityError) as exc:
            if isinstance(exc, IntegrityError) and not (retry_if and retry_if(exc)):
                raise
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            current_app.logger.warning(
                "Concurrent write conflict (attempt %d/%d): %s", attempt + 1, attempts, exc
            )
            time.sleep(backoff_base * (2 ** attempt))

