# quarry_erp/db/errors.py

import logging
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = (
    "database is locked",
    "statement timeout",
    "timeout expired",
    "timed out",
)


class StoreError(Exception):
    """A store call failed; the operation was aborted without partial writes."""

    retryable = False

    def __init__(self, action: str, message: str):
        super().__init__(f"Failed to {action}: {message}")
        self.action = action


class StoreTimeoutError(StoreError):
    """A store call did not finish within the configured timeout."""

    retryable = True


def _is_timeout(exc: OperationalError) -> bool:
    text = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def store_errors(action: str):
    """
    Translate driver errors raised inside the block into StoreError /
    StoreTimeoutError, tagged with a human readable action.
    """
    try:
        yield
    except OperationalError as exc:
        if _is_timeout(exc):
            logger.warning("Store timeout while trying to %s: %s", action, exc)
            raise StoreTimeoutError(action, "the data store did not respond in time") from exc
        logger.exception("Store failure while trying to %s", action)
        raise StoreError(action, str(exc.orig or exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Store failure while trying to %s", action)
        raise StoreError(action, str(exc)) from exc
