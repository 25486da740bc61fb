# File: schemagen/errors.py
"""
SchemaGen - Error Taxonomy
===========================
Exceptions raised by the schema compiler.

Every exception carries a stable ``code`` (matching the error catalogue used
by the rest of the toolchain), the offending ``entity`` and ``subject``
(column, relationship or dialect name) and a free-form ``context`` dict, so
that batch compilation can report a failure without re-parsing the message.

Two kinds are defined here:

* **schema-structural** — fatal to the compilation of one entity.
* **codec** — raised only when a caller explicitly asks for value validation.

Emitter-coverage problems are *not* exceptions; they are recorded as warning
diagnostics (see ``schemagen.validators.DiagnosticLog``).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class SchemaGenError(ValueError):
    """Base class for every compiler error."""

    code: str = "SCHEMAGEN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        subject: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.entity: Optional[str] = entity
        self.subject: Optional[str] = subject
        self.context: Dict[str, Any] = context or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "entity": self.entity,
            "subject": self.subject,
            "context": self.context,
        }


class SchemaStructuralError(SchemaGenError):
    """The entity description cannot be compiled as given."""

    code = "DB_SCHEMA_STRUCTURAL"


class MissingPrimaryKeyError(SchemaStructuralError):
    code = "DB_MISSING_PRIMARY_KEY"


class PrimaryKeyConflictError(SchemaStructuralError):
    """Table-level and column-level primary key declarations disagree."""

    code = "DB_PRIMARY_KEY_CONFLICT"


class UnresolvedReferenceError(SchemaStructuralError):
    """A column, table or entity named by the schema does not exist."""

    code = "DB_UNRESOLVED_REFERENCE"


class MissingJunctionTableError(SchemaStructuralError):
    code = "DB_MISSING_JUNCTION_TABLE"


class JunctionColumnCollisionError(SchemaStructuralError):
    code = "DB_JUNCTION_COLUMN_COLLISION"


class UnknownRelationTypeError(SchemaStructuralError):
    code = "DB_UNKNOWN_RELATION_TYPE"


class UnknownDialectError(SchemaStructuralError):
    code = "DB_UNKNOWN_DIALECT"


class InvalidColumnTypeError(SchemaStructuralError):
    code = "DB_INVALID_COLUMN_TYPE"


class CodecError(SchemaGenError):
    """A value is outside the domain its column type can round-trip."""

    code = "DB_CODEC_MISMATCH"


__all__: List[str] = [
    "SchemaGenError",
    "SchemaStructuralError",
    "MissingPrimaryKeyError",
    "PrimaryKeyConflictError",
    "UnresolvedReferenceError",
    "MissingJunctionTableError",
    "JunctionColumnCollisionError",
    "UnknownRelationTypeError",
    "UnknownDialectError",
    "InvalidColumnTypeError",
    "CodecError",
]
