"""
Store error taxonomy.

Every failure that leaves the directory core is a ``DirectoryError`` carrying
one of four kinds. The listing views branch on the kind: a missing table asks
for the setup script, a permission failure asks to check access, anything
else can be retried by re-running the fetch cycle.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import NoSuchTableError

logger = logging.getLogger(__name__)

SQLSTATE_UNDEFINED_TABLE = "42P01"
SQLSTATE_INSUFFICIENT_PRIVILEGE = "42501"

_MISSING_TABLE_PATTERN = re.compile(r'no such table|relation "[^"]*" does not exist|undefinedtable')
_PERMISSION_MARKERS = ("permission denied", "row-level security", "insufficient privilege")


class StoreErrorKind(str, Enum):
    NOT_PROVISIONED = "not_provisioned"
    PERMISSION_DENIED = "permission_denied"
    TRANSIENT = "transient"
    MALFORMED = "malformed"


class DirectoryError(Exception):
    """A classified failure from the directory store."""

    def __init__(self, kind: StoreErrorKind, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.table = table

    @property
    def retryable(self) -> bool:
        return self.kind == StoreErrorKind.TRANSIENT

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "table": self.table}

    def __repr__(self) -> str:
        return f"DirectoryError({self.kind.value!r}, {self.message!r}, table={self.table!r})"


def _table_label(table: Optional[str]) -> str:
    if not table:
        return "Directory"
    return table.replace("_", " ").capitalize()


def user_message(kind: StoreErrorKind, table: Optional[str] = None) -> str:
    """Actionable text shown to the user for each error kind."""
    label = _table_label(table)
    if kind == StoreErrorKind.NOT_PROVISIONED:
        return f"{label} table not found in database. Please run the SQL setup script."
    if kind == StoreErrorKind.PERMISSION_DENIED:
        return f"Access to {label.lower()} was denied. Please check your permissions."
    if kind == StoreErrorKind.MALFORMED:
        return f"{label} data came back in an unexpected format."
    return f"Could not load {label.lower()} right now. Please try again."


def not_provisioned(table: str) -> DirectoryError:
    return DirectoryError(StoreErrorKind.NOT_PROVISIONED, user_message(StoreErrorKind.NOT_PROVISIONED, table), table)


def _sqlstate(exc: BaseException) -> Optional[str]:
    # asyncpg exposes .sqlstate, psycopg exposes .pgcode
    orig = getattr(exc, "orig", None) or exc
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _kind_from_sqlstate(code: str) -> StoreErrorKind:
    if code == SQLSTATE_UNDEFINED_TABLE:
        return StoreErrorKind.NOT_PROVISIONED
    if code == SQLSTATE_INSUFFICIENT_PRIVILEGE:
        return StoreErrorKind.PERMISSION_DENIED
    # missing columns, missing databases, connection drops: retryable
    return StoreErrorKind.TRANSIENT


def _kind_from_text(text: str) -> StoreErrorKind:
    """Drivers without SQLSTATE codes (SQLite) only give a message."""
    if _MISSING_TABLE_PATTERN.search(text):
        return StoreErrorKind.NOT_PROVISIONED
    if any(m in text for m in _PERMISSION_MARKERS):
        return StoreErrorKind.PERMISSION_DENIED
    return StoreErrorKind.TRANSIENT


def classify_store_error(exc: BaseException, table: Optional[str] = None) -> DirectoryError:
    """Map a raw driver / SQLAlchemy / validation error to a DirectoryError."""
    if isinstance(exc, DirectoryError):
        return exc

    if isinstance(exc, ValidationError):
        kind = StoreErrorKind.MALFORMED
    elif isinstance(exc, NoSuchTableError):
        kind = StoreErrorKind.NOT_PROVISIONED
    else:
        code = _sqlstate(exc)
        kind = _kind_from_sqlstate(code) if code else _kind_from_text(str(exc).lower())

    logger.warning("Store error on %s classified as %s: %s", table or "?", kind.value, exc)
    return DirectoryError(kind, user_message(kind, table), table)
