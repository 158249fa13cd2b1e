"""Recognise database errors caused by tables or columns that were never migrated."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import OperationalError, ProgrammingError

from soot.common.exceptions import ServiceUnavailableError
from soot.common.logging import get_logger

logger = get_logger("schema_guard")

BUDGET_TABLES_UNAVAILABLE_MESSAGE = (
    "Le module budget n'est pas encore disponible: lance `alembic upgrade head` "
    "puis recharge la page."
)

_MISSING_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "undefinedtable",
    "undefinedcolumn",
    "does not exist",
)


def is_table_unavailable_error(exc: BaseException, hint: str | None = None) -> bool:
    if not isinstance(exc, (ProgrammingError, OperationalError)):
        return False

    message = f"{exc.orig!r} {exc}".lower()
    if not any(marker in message for marker in _MISSING_SCHEMA_MARKERS):
        return False
    return hint is None or hint.lower() in message


@asynccontextmanager
async def budget_tables_guard() -> AsyncIterator[None]:
    try:
        yield
    except (ProgrammingError, OperationalError) as exc:
        if is_table_unavailable_error(exc, hint="budget"):
            logger.warning("Budget tables unavailable: %s", exc.orig)
            raise ServiceUnavailableError(BUDGET_TABLES_UNAVAILABLE_MESSAGE) from exc
        raise
