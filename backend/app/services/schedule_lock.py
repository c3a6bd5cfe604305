from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# First key of the two-int advisory lock; the second is the date ordinal.
ADVISORY_LOCK_NAMESPACE = 7301


@dataclass
class _DateLock:
    lock: Lock = field(default_factory=Lock)
    # Requests holding or waiting for this date.
    users: int = 0


class ScheduleLockRegistry:
    """Serialises check-then-write sequences that touch the same exam date.

    Room, teacher and student clashes can all cross rooms, so the lock is
    keyed by date alone. Within one process a ``threading.Lock`` per date is
    taken; on PostgreSQL a transaction-scoped advisory lock per date is also
    taken so several workers serialise too. The advisory lock is released when
    the caller commits or rolls back.

    A date's entry exists only while some request holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[dt.date, _DateLock] = {}
        self._guard = Lock()

    def _checkout(self, exam_date: dt.date) -> _DateLock:
        with self._guard:
            entry = self._locks.get(exam_date)
            if entry is None:
                entry = self._locks[exam_date] = _DateLock()
            entry.users += 1
            return entry

    def _checkin(self, exam_date: dt.date, entry: _DateLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[exam_date]

    @contextmanager
    def hold(self, db: Session, *exam_dates: dt.date) -> Iterator[None]:
        # Fixed order so two requests spanning the same dates cannot deadlock.
        ordered = sorted(set(exam_dates))
        checked_out: list[tuple[dt.date, _DateLock]] = []
        acquired: list[Lock] = []
        try:
            for exam_date in ordered:
                entry = self._checkout(exam_date)
                checked_out.append((exam_date, entry))
                entry.lock.acquire()
                acquired.append(entry.lock)
            if _uses_advisory_locks(db):
                for exam_date in ordered:
                    db.execute(
                        text("SELECT pg_advisory_xact_lock(:namespace, :key)"),
                        {"namespace": ADVISORY_LOCK_NAMESPACE, "key": exam_date.toordinal()},
                    )
            logger.debug("Holding schedule lock for %s", ", ".join(day.isoformat() for day in ordered))
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for exam_date, entry in reversed(checked_out):
                self._checkin(exam_date, entry)

    def active_dates(self) -> list[dt.date]:
        with self._guard:
            return sorted(self._locks)

    def clear(self) -> None:
        with self._guard:
            self._locks = {entry_date: entry for entry_date, entry in self._locks.items() if entry.users}


def _uses_advisory_locks(db: Session) -> bool:
    if not get_settings().use_advisory_schedule_locks:
        return False
    return db.get_bind().dialect.name == "postgresql"


_registry = ScheduleLockRegistry()


def schedule_lock(db: Session, *exam_dates: dt.date):
    return _registry.hold(db, *exam_dates)


def clear_schedule_locks() -> None:
    _registry.clear()
