import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session

from . import config
from .models import Base

_log = logging.getLogger("hotel.store")


def make_engine(url: str | None = None, **kw) -> Engine:
    url = url or config.DB_URL
    if url.startswith("sqlite"):
        kw.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, future=True, **kw)


class HotelStore:
    """
    Owns the database engine and the single-writer lock.

    Every mutating operation runs inside `transaction()`: the lock is held for
    the whole read-check-write sequence and the session is committed on
    success or rolled back when anything raises. Reads go through
    `snapshot()` and never take the lock.
    """

    def __init__(self, engine: Engine | None = None):
        self.engine = engine if engine is not None else make_engine()
        self._lock = threading.RLock()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        with self._lock:
            s = Session(self.engine, expire_on_commit=False)
            try:
                yield s
                s.commit()
            except Exception:
                s.rollback()
                _log.debug("transaction rolled back", exc_info=True)
                raise
            finally:
                s.close()

    @contextmanager
    def snapshot(self) -> Iterator[Session]:
        s = Session(self.engine, expire_on_commit=False)
        try:
            yield s
        finally:
            s.close()
