from __future__ import annotations

import re
from typing import Iterable, Optional

from sqlalchemy import select

from extensions import db

DEFAULT_WIDTH = 4

STUDENT_PREFIX = "ST"
TEACHER_PREFIX = "TC"


class MalformedIdentifier(ValueError):
    pass


class IdentifierOverflow(ValueError):
    pass


def year_prefix(prefix: str, year: int) -> str:
    """Return ``<prefix><yy>`` for a four digit year (2025 -> ``ST25``)."""
    return f"{prefix}{int(year) % 100:02d}"


def next_identifier(prefix: str, year: int, latest: Optional[str] = None, width: int = DEFAULT_WIDTH) -> str:
    """Return the identifier following ``latest`` in the year-scoped namespace.

    ``latest`` is the greatest identifier currently stored for the prefix. When
    it belongs to another year (or is missing) the sequence starts again at 1.
    A matching identifier whose tail is not exactly ``width`` digits raises
    :class:`MalformedIdentifier`; a sequence that no longer fits in ``width``
    digits raises :class:`IdentifierOverflow`.
    """
    head = year_prefix(prefix, year)
    next_seq = 1
    if latest and latest.startswith(head):
        tail = latest[len(head):]
        if not re.fullmatch(rf"\d{{{width}}}", tail):
            raise MalformedIdentifier(f"Cannot read sequence number from {latest!r}")
        next_seq = int(tail) + 1
    if next_seq >= 10 ** width:
        raise IdentifierOverflow(f"Sequence for {head} exhausted after {latest!r}")
    return f"{head}{next_seq:0{width}d}"


def next_identifier_from(prefix: str, year: int, identifiers: Iterable[str], width: int = DEFAULT_WIDTH) -> str:
    head = year_prefix(prefix, year)
    matching = [i for i in identifiers if i and i.startswith(head)]
    return next_identifier(prefix, year, max(matching) if matching else None, width)


def latest_identifier(column, prefix: str, year: int) -> Optional[str]:
    """Fetch the greatest stored value of ``column`` for ``<prefix><yy>``.

    Read-then-write: nothing reserves the returned value, so two concurrent
    callers can derive the same next identifier. The unique constraint on the
    column turns that into an IntegrityError at insert time.
    """
    head = year_prefix(prefix, year)
    stmt = select(column).where(column.like(f"{head}%")).order_by(column.desc()).limit(1)
    return db.session.execute(stmt).scalar()


def generate_identifier(column, prefix: str, year: int, width: int = DEFAULT_WIDTH) -> str:
    return next_identifier(prefix, year, latest_identifier(column, prefix, year), width)


def is_identifier_collision(exc, column) -> bool:
    """True when ``exc`` (an IntegrityError) comes from the unique index on ``column``.

    SQLite reports ``UNIQUE constraint failed: students.stu_id``; MySQL reports
    ``Duplicate entry 'ST250001' for key 'ix_students_stu_id'``.
    """
    message = str(getattr(exc, "orig", exc) or "")
    if "UNIQUE constraint failed" not in message and "Duplicate entry" not in message:
        return False
    return f"{column.table.name}.{column.name}" in message or f"ix_{column.table.name}_{column.name}" in message
