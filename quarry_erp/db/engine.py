# quarry_erp/db/engine.py

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from quarry_erp.core.config import settings


def _connect_args(db_url: str, timeout: float) -> dict:
    """Driver-level bound on how long a single store call may wait."""
    backend = make_url(db_url).get_backend_name()
    if backend == "sqlite":
        return {"timeout": timeout, "check_same_thread": False}
    if backend == "postgresql":
        return {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return {}


def build_engine(db_url: str, timeout: float = settings.STORE_TIMEOUT_SECONDS) -> Engine:
    # echo=True if you want to see SQL printed in the terminal
    return create_engine(
        db_url,
        future=True,
        connect_args=_connect_args(db_url, timeout),
    )


@lru_cache
def get_engine() -> Engine:
    return build_engine(settings.DATABASE_URL)
