import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lock_for_update(query: Query) -> Query:
    """
    Apply row-level locking to a query.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, other databases honor it.
    """
    return query.with_for_update()


def run_with_retry(
    db: Session,
    func: Callable[[], T],
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> T:
    """
    Run a unit of work, retrying on lock conflicts and deadlocks.

    The session is rolled back before every retry so the work starts
    again from fresh state. Business-rule errors are never retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                f"Storage conflict ({exc.orig}), retrying in {delay:.2f}s "
                f"(attempt {attempt + 1}/{attempts})"
            )
            time.sleep(delay)
    raise RuntimeError("run_with_retry needs at least one attempt")
