"""
Generated SQL Validator
=======================

Keyword/shape check applied to every engine-generated query before it is
sent to the read-only executor.

Rules:
1. Trailing semicolons are stripped, then the text must start with SELECT
   (WITH ... SELECT is rejected too)
2. No further ";" anywhere (single statement only)
3. None of FORBIDDEN_KEYWORDS as a whole word, anywhere, in any case
4. No LIMIT clause -> " limit <row_limit>" is appended

This is NOT a SQL parser. Whole-word matching rejects harmless text such as
a column aliased "set" and would miss keywords hidden in ways it does not
look for. The execute_sql function on the database side is the real
boundary: it is declared STABLE, so PL/pgSQL refuses data-modifying
statements, carries a 5s statement_timeout, and runs as the caller under
RLS.
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional

from utils.errors import SqlValidationError

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 200

FORBIDDEN_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "create",
    "grant",
    "revoke",
    "truncate",
    "call",
    "execute",
    "set",
    "vacuum",
    "analyze",
    "refresh",
    "copy",
)

_FORBIDDEN_PATTERNS = [
    (keyword, re.compile(rf"\b{keyword}\b", re.IGNORECASE)) for keyword in FORBIDDEN_KEYWORDS
]
_SELECT_RE = re.compile(r"^select\b", re.IGNORECASE)
_LIMIT_RE = re.compile(r"\blimit\b", re.IGNORECASE)
_TRAILING_SEMICOLONS_RE = re.compile(r";+\s*$")


@dataclass(frozen=True)
class SqlValidation:
    ok: bool
    sql: Optional[str] = None
    reason: Optional[str] = None


def validate_sql(sql: Optional[str], row_limit: int = DEFAULT_ROW_LIMIT) -> SqlValidation:
    """Validate one generated statement. Never raises."""
    trimmed = _TRAILING_SEMICOLONS_RE.sub("", (sql or "").strip())

    if not _SELECT_RE.match(trimmed):
        return SqlValidation(ok=False, reason="Only SELECT statements are allowed.")

    if ";" in trimmed:
        return SqlValidation(ok=False, reason="Multiple statements are not allowed.")

    for keyword, pattern in _FORBIDDEN_PATTERNS:
        if pattern.search(trimmed):
            return SqlValidation(ok=False, reason=f"Forbidden keyword: {keyword}")

    safe_sql = trimmed if _LIMIT_RE.search(trimmed) else f"{trimmed} limit {row_limit}"
    return SqlValidation(ok=True, sql=safe_sql)


def require_valid_sql(sql: Optional[str], row_limit: int = DEFAULT_ROW_LIMIT) -> str:
    """validate_sql() that raises SqlValidationError instead of returning a result."""
    result = validate_sql(sql, row_limit=row_limit)
    if not result.ok:
        logger.warning(f"[SQL] Validation failed: {result.reason}")
        raise SqlValidationError(result.reason or "Invalid SQL.")
    return result.sql
