# File: schemagen/utils.py
"""
SchemaGen - Utility Functions & Helpers
========================================
String transformation, literal quoting, file I/O and timing helpers used
throughout the compiler.

- Naming conversions are decorated with ``@lru_cache(maxsize=None)``; the
  emitters call them once per column per dialect.
- Literal helpers produce the quoting rules of each target text format
  (SQL, TypeScript, Prisma schema).
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Words that need quoting in at least one of the supported SQL variants
SQL_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "all", "alter", "and", "as", "asc", "between", "by", "case", "check",
    "column", "constraint", "create", "cross", "default", "delete", "desc",
    "distinct", "drop", "else", "end", "exists", "foreign", "from", "full",
    "group", "having", "in", "index", "inner", "insert", "into", "is",
    "join", "key", "left", "like", "limit", "not", "null", "offset", "on",
    "or", "order", "outer", "primary", "references", "right", "select",
    "set", "table", "then", "to", "union", "unique", "update", "user",
    "using", "values", "when", "where", "with",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase (Prisma model names).

    Examples:
        >>> to_pascal_case("post_tags")
        'PostTags'
        >>> to_pascal_case("user")
        'User'
    """
    if not name:
        return ""
    return "".join(word.capitalize() for word in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("post_tags")
        'postTags'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, enough for default table names.

    Examples:
        >>> to_plural("category")
        'categories'
        >>> to_plural("person")
        'people'
    """
    if not name:
        return ""

    lower: str = name.lower()
    irregulars: Dict[str, str] = {
        "person": "people",
        "child": "children",
        "datum": "data",
        "index": "indices",
        "status": "statuses",
        "address": "addresses",
    }
    if lower in irregulars:
        plural: str = irregulars[lower]
        if name[0].isupper():
            return plural[0].upper() + plural[1:]
        return plural

    if lower.endswith(("sh", "ch", "x", "z", "ss")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("s"):
        return name
    return name + "s"


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split *name* (any casing style) into lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


def is_identifier(name: str) -> bool:
    """True for names usable unquoted as table/column identifiers."""
    return bool(IDENTIFIER_RE.match(name))


def is_reserved_word(name: str) -> bool:
    return name.lower() in SQL_RESERVED_WORDS


# ---------------------------------------------------------------------------
# Literal quoting
# ---------------------------------------------------------------------------


def sql_string_literal(value: str) -> str:
    """Single-quote *value* for SQL, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def sql_literal(value: Any) -> str:
    """Render an already-serialized value as a SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return sql_string_literal(value)
    return sql_string_literal(json.dumps(value, sort_keys=True, separators=(",", ":")))


def js_string_literal(value: str) -> str:
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def js_literal(value: Any) -> str:
    """Render an already-serialized value as a TypeScript literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return js_string_literal(value)
    return json.dumps(value, sort_keys=True)


def prisma_literal(value: Any) -> str:
    """Render an already-serialized value for ``@default(...)``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    return json.dumps(json.dumps(value, sort_keys=True, separators=(",", ":")))


def format_list_literal(items: Sequence[str]) -> str:
    """Bracketed list of single-quoted JS string literals."""
    return f"[{', '.join(js_string_literal(item) for item in items)}]"


def build_ts_import_block(imports: Dict[str, Iterable[str]]) -> str:
    """
    Build a sorted, de-duplicated TypeScript import block from a mapping of
    module → names.

    Example:
        >>> build_ts_import_block({"convex/values": {"v"}})
        "import { v } from 'convex/values';"
    """
    lines: List[str] = []
    for module in sorted(imports):
        names: List[str] = sorted(set(imports[module]))
        if names:
            lines.append(f"import {{ {', '.join(names)} }} from '{module}';")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            shutil.move(tmp_path, str(path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


class Timer:
    """
    Simple context-manager timer for profiling compilation steps.

    Usage:
        with Timer("emit sql") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IDENTIFIER_RE",
    "SQL_RESERVED_WORDS",
    "to_pascal_case",
    "to_camel_case",
    "to_plural",
    "is_identifier",
    "is_reserved_word",
    "sql_string_literal",
    "sql_literal",
    "js_string_literal",
    "js_literal",
    "prisma_literal",
    "format_list_literal",
    "build_ts_import_block",
    "ensure_directory",
    "write_file",
    "count_lines",
    "Timer",
]

logger.debug("schemagen.utils loaded — %d public symbols.", len(__all__))
