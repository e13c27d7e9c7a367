# Overview: Retry helpers for concurrent writes against the database.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


# Lock timeouts and optimistic-lock (version_id) conflicts
TRANSIENT_ERRORS = (OperationalError, StaleDataError)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on=TRANSIENT_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Rolls the session back before each retry so `func` always starts from a
    clean transaction. The last exception is re-raised once attempts run out.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
