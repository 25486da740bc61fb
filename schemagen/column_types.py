# File: schemagen/column_types.py
"""
SchemaGen - Column Type Registry
=================================
Factories for the built-in column kinds.  Each kind produces an immutable
``ColumnType`` carrying:

* a codec pair (``serialize`` / ``deserialize``) with
  ``deserialize(serialize(x)) == x`` for every ``x`` the validator accepts;
* a validator accepting exactly that domain;
* one *base* emitter per dialect.  Base emitters know nothing about
  modifiers; ``schemagen.emitters`` composes base + modifier chain.

Base emitter fragments, per dialect:

    sql      "<name> <TYPE>"            e.g. "email VARCHAR(255)"
    drizzle  "<builder>('<name>', ...)" e.g. "varchar('email', { length: 255 })"
    prisma   "<name> <Type> [@db...]"   e.g. "email String @db.VarChar(255)"
    convex   "<name>: v.<validator>"    e.g. "email: v.string()"
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import math
import uuid as _uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from schemagen.errors import InvalidColumnTypeError, UnknownDialectError
from schemagen.models import (
    DEFAULT_OPTIONS,
    ColumnType,
    Dialect,
    DialectOptions,
    Emitter,
    SqlVariant,
)
from schemagen.utils import format_list_literal, js_string_literal, sql_string_literal

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.column_types")

DEFAULT_DECIMAL_SCALE: int = 2


def _variant(options: Optional[DialectOptions]) -> SqlVariant:
    return (options or DEFAULT_OPTIONS).sql_variant


def _by_variant(postgres: str, mysql: str, sqlite: str) -> Callable[[Optional[DialectOptions]], str]:
    table: Dict[SqlVariant, str] = {
        SqlVariant.POSTGRES: postgres,
        SqlVariant.MYSQL: mysql,
        SqlVariant.SQLITE: sqlite,
    }
    return lambda options: table[_variant(options)]


def _emitters(
    sql: Emitter,
    drizzle: Emitter,
    prisma: Emitter,
    convex: Emitter,
) -> Dict[Dialect, Emitter]:
    return {
        Dialect.SQL: sql,
        Dialect.DRIZZLE: drizzle,
        Dialect.PRISMA: prisma,
        Dialect.CONVEX: convex,
    }


def _simple(
    sql_type: Callable[[Optional[DialectOptions]], str],
    drizzle_builder: str,
    prisma_type: str,
    convex_validator: str,
) -> Dict[Dialect, Emitter]:
    """Emitters for kinds whose fragments take no parameters."""
    return _emitters(
        sql=lambda name, options=None: f"{name} {sql_type(options)}",
        drizzle=lambda name, options=None: f"{drizzle_builder}('{name}')",
        prisma=lambda name, options=None: f"{name} {prisma_type}",
        convex=lambda name, options=None: f"{name}: {convex_validator}",
    )


def _identity(value: Any) -> Any:
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Kind factories
# ---------------------------------------------------------------------------


def string(max_length: Optional[int] = None) -> ColumnType:
    """Text column; ``VARCHAR(n)`` when bounded, ``TEXT`` otherwise."""
    if max_length is not None and (not _is_int(max_length) or max_length <= 0):
        raise InvalidColumnTypeError(
            f"string max_length must be a positive integer, got {max_length!r}.",
            subject="string",
        )

    def _valid(value: Any) -> bool:
        return isinstance(value, str) and (max_length is None or len(value) <= max_length)

    if max_length is None:
        emitters = _simple(_by_variant("TEXT", "TEXT", "TEXT"), "text", "String", "v.string()")
    else:
        emitters = _emitters(
            sql=lambda name, options=None: f"{name} VARCHAR({max_length})",
            drizzle=lambda name, options=None: f"varchar('{name}', {{ length: {max_length} }})",
            prisma=lambda name, options=None: f"{name} String @db.VarChar({max_length})",
            convex=lambda name, options=None: f"{name}: v.string()",
        )

    return ColumnType(
        type_name="string",
        type_params=(max_length,),
        validator=_valid,
        emitters=emitters,
    )


def integer() -> ColumnType:
    return ColumnType(
        type_name="integer",
        validator=_is_int,
        emitters=_simple(_by_variant("INTEGER", "INTEGER", "INTEGER"), "integer", "Int", "v.number()"),
    )


def float_() -> ColumnType:
    """Finite binary floating point.  Ints are accepted and widened."""

    def _valid(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)

    return ColumnType(
        type_name="float",
        serializer=float,
        deserializer=float,
        validator=_valid,
        emitters=_simple(_by_variant("REAL", "DOUBLE", "REAL"), "real", "Float", "v.number()"),
    )


def decimal(precision: Optional[int] = None, scale: Optional[int] = None) -> ColumnType:
    """
    Exact numeric.  Values are ``Decimal`` instances serialized to their
    canonical string form.  When *precision* is given and *scale* is not,
    the scale defaults to 2.
    """
    if precision is not None and (not _is_int(precision) or precision <= 0):
        raise InvalidColumnTypeError(
            f"decimal precision must be a positive integer, got {precision!r}.",
            subject="decimal",
        )
    if scale is not None and (not _is_int(scale) or scale < 0):
        raise InvalidColumnTypeError(
            f"decimal scale must be a non-negative integer, got {scale!r}.",
            subject="decimal",
        )
    effective_scale: Optional[int] = scale
    if precision is not None and scale is None:
        effective_scale = DEFAULT_DECIMAL_SCALE
    if precision is not None and effective_scale is not None and effective_scale > precision:
        raise InvalidColumnTypeError(
            f"decimal scale ({effective_scale}) cannot exceed precision ({precision}).",
            subject="decimal",
        )

    def _valid(value: Any) -> bool:
        if not isinstance(value, Decimal) or not value.is_finite():
            return False
        sign, digits, exponent = value.as_tuple()
        fraction_digits: int = max(0, -int(exponent))
        integer_digits: int = max(0, len(digits) + int(exponent))
        if effective_scale is not None and fraction_digits > effective_scale:
            return False
        if precision is not None and integer_digits > precision - (effective_scale or 0):
            return False
        return True

    def _deserialize(raw: Any) -> Decimal:
        try:
            return Decimal(raw)
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal literal: {raw!r}") from exc

    if precision is None:
        emitters = _simple(_by_variant("DECIMAL", "DECIMAL", "DECIMAL"), "numeric", "Decimal", "v.number()")
    else:
        emitters = _emitters(
            sql=lambda name, options=None: f"{name} DECIMAL({precision},{effective_scale})",
            drizzle=lambda name, options=None: (
                f"numeric('{name}', {{ precision: {precision}, scale: {effective_scale} }})"
            ),
            prisma=lambda name, options=None: (
                f"{name} Decimal @db.Decimal({precision}, {effective_scale})"
            ),
            convex=lambda name, options=None: f"{name}: v.number()",
        )

    return ColumnType(
        type_name="decimal",
        type_params=(precision, effective_scale),
        serializer=str,
        deserializer=_deserialize,
        validator=_valid,
        emitters=emitters,
    )


def boolean() -> ColumnType:
    return ColumnType(
        type_name="boolean",
        validator=lambda value: isinstance(value, bool),
        emitters=_simple(_by_variant("BOOLEAN", "BOOLEAN", "BOOLEAN"), "boolean", "Boolean", "v.boolean()"),
    )


def date() -> ColumnType:
    """Calendar date ↔ ISO-8601 ``YYYY-MM-DD``."""
    return ColumnType(
        type_name="date",
        serializer=lambda value: value.isoformat(),
        deserializer=_dt.date.fromisoformat,
        validator=lambda value: isinstance(value, _dt.date) and not isinstance(value, _dt.datetime),
        emitters=_simple(_by_variant("DATE", "DATE", "DATE"), "date", "DateTime @db.Date", "v.string()"),
    )


def timestamp() -> ColumnType:
    """Point in time ↔ ISO-8601 string (offset preserved when present)."""
    return ColumnType(
        type_name="timestamp",
        serializer=lambda value: value.isoformat(),
        deserializer=_dt.datetime.fromisoformat,
        validator=lambda value: isinstance(value, _dt.datetime),
        emitters=_simple(
            _by_variant("TIMESTAMP", "DATETIME", "TIMESTAMP"), "timestamp", "DateTime", "v.number()"
        ),
    )


def uuid() -> ColumnType:
    """
    Well-formed UUID strings, stored as-is.

    The SQL fragment is the bare type; primary-key placement is left to the
    table emitter.
    """

    def _valid(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        _uuid.UUID(value)
        return True

    return ColumnType(
        type_name="uuid",
        validator=_valid,
        emitters=_simple(_by_variant("UUID", "CHAR(36)", "TEXT"), "uuid", "String @db.Uuid", "v.string()"),
    )


def _json_dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), allow_nan=False)


def json_() -> ColumnType:
    """Arbitrary JSON document ↔ compact, key-sorted JSON text."""

    def _valid(value: Any) -> bool:
        return json.loads(_json_dumps(value)) == value

    return ColumnType(
        type_name="json",
        serializer=_json_dumps,
        deserializer=json.loads,
        validator=_valid,
        emitters=_simple(_by_variant("JSONB", "JSON", "TEXT"), "jsonb", "Json", "v.any()"),
    )


def array(element_type: Union[ColumnType, str]) -> ColumnType:
    """
    Homogeneous list stored as a JSON array of element-serialized values.
    ``element_type`` may be a ``ColumnType`` or a registered kind name.
    """
    element: ColumnType = (
        make_column_type(element_type) if isinstance(element_type, str) else element_type
    )
    if not isinstance(element, ColumnType):
        raise InvalidColumnTypeError(
            f"array element must be a ColumnType, got {type(element_type).__name__}.",
            subject="array",
        )

    def _valid(value: Any) -> bool:
        return isinstance(value, list) and all(element.validate_value(item) for item in value)

    def _serialize(value: List[Any]) -> str:
        return _json_dumps([element.serialize(item) for item in value])

    def _deserialize(raw: str) -> List[Any]:
        return [element.deserialize(item) for item in json.loads(raw)]

    def _convex(name: str, options: Optional[DialectOptions] = None) -> str:
        inner_emitter: Optional[Emitter] = element.emitter_for(Dialect.CONVEX)
        inner: str = "v.any()"
        if inner_emitter is not None:
            inner = inner_emitter(name, options).split(": ", 1)[-1]
        return f"{name}: v.array({inner})"

    base: Dict[Dialect, Emitter] = _simple(_by_variant("JSONB", "JSON", "TEXT"), "jsonb", "Json", "v.any()")
    base[Dialect.CONVEX] = _convex

    return ColumnType(
        type_name="array",
        type_params=(element,),
        serializer=_serialize,
        deserializer=_deserialize,
        validator=_valid,
        emitters=base,
    )


def enum(values: Sequence[str]) -> ColumnType:
    """Closed set of string values."""
    members: tuple = tuple(values) if not isinstance(values, str) else ()
    if not members or not all(isinstance(m, str) and m for m in members):
        raise InvalidColumnTypeError(
            f"enum requires a non-empty list of non-empty strings, got {values!r}.",
            subject="enum",
        )
    if len(set(members)) != len(members):
        raise InvalidColumnTypeError(f"enum values must be unique: {list(members)}", subject="enum")

    sql_members: str = ", ".join(sql_string_literal(m) for m in members)

    def _sql(name: str, options: Optional[DialectOptions] = None) -> str:
        if _variant(options) == SqlVariant.MYSQL:
            return f"{name} ENUM({sql_members})"
        return f"{name} TEXT CHECK ({name} IN ({sql_members}))"

    def _convex(name: str, options: Optional[DialectOptions] = None) -> str:
        literals: List[str] = [f"v.literal({js_string_literal(m)})" for m in members]
        if len(literals) == 1:
            return f"{name}: {literals[0]}"
        return f"{name}: v.union({', '.join(literals)})"

    return ColumnType(
        type_name="enum",
        type_params=members,
        validator=lambda value: isinstance(value, str) and value in members,
        emitters=_emitters(
            sql=_sql,
            drizzle=lambda name, options=None: f"text('{name}', {{ enum: {format_list_literal(members)} }})",
            prisma=lambda name, options=None: f"{name} String",
            convex=_convex,
        ),
    )


def custom(
    type_name: str,
    serializer: Optional[Callable[[Any], Any]] = None,
    deserializer: Optional[Callable[[Any], Any]] = None,
    validator: Optional[Callable[[Any], bool]] = None,
    emitters: Optional[Mapping[Union[Dialect, str], Emitter]] = None,
    type_params: Sequence[Any] = (),
) -> ColumnType:
    """
    Caller-defined kind.  Dialects missing from *emitters* fall back to the
    generic fragment at emission time (with a warning).
    """
    if not type_name:
        raise InvalidColumnTypeError("custom column type requires a type_name.", subject="custom")
    resolved: Dict[Dialect, Emitter] = {}
    for tag, fn in (emitters or {}).items():
        try:
            resolved[Dialect(tag)] = fn
        except ValueError as exc:
            raise UnknownDialectError(
                f"Unknown dialect '{tag}' in emitters of custom type '{type_name}'.",
                subject=str(tag),
            ) from exc
    return ColumnType(
        type_name=type_name,
        type_params=tuple(type_params),
        serializer=serializer or _identity,
        deserializer=deserializer or _identity,
        validator=validator,
        emitters=resolved,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_KIND_FACTORIES: Dict[str, Callable[..., ColumnType]] = {
    "string": string,
    "integer": integer,
    "float": float_,
    "decimal": decimal,
    "boolean": boolean,
    "date": date,
    "timestamp": timestamp,
    "uuid": uuid,
    "json": json_,
    "array": array,
    "enum": enum,
    "custom": custom,
}

_KIND_ALIASES: Dict[str, str] = {
    "varchar": "string",
    "text": "string",
    "int": "integer",
    "bool": "boolean",
    "numeric": "decimal",
    "datetime": "timestamp",
    "jsonb": "json",
}


def registered_kinds() -> List[str]:
    return list(_KIND_FACTORIES)


def make_column_type(kind: str, *params: Any, **options: Any) -> ColumnType:
    """
    Build a ``ColumnType`` for a registered *kind*.

    Raises:
        InvalidColumnTypeError: unknown kind or parameters the kind rejects.
    """
    tag: str = str(kind).strip().lower()
    tag = _KIND_ALIASES.get(tag, tag)
    factory: Optional[Callable[..., ColumnType]] = _KIND_FACTORIES.get(tag)
    if factory is None:
        raise InvalidColumnTypeError(
            f"Unknown column type '{kind}'. Registered kinds: {', '.join(_KIND_FACTORIES)}.",
            subject=str(kind),
        )
    try:
        column_type: ColumnType = factory(*params, **options)
    except TypeError as exc:
        raise InvalidColumnTypeError(
            f"Invalid parameters for column type '{tag}': {exc}",
            subject=tag,
        ) from exc
    logger.debug("Built column type %r", column_type)
    return column_type


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_DECIMAL_SCALE",
    "string",
    "integer",
    "float_",
    "decimal",
    "boolean",
    "date",
    "timestamp",
    "uuid",
    "json_",
    "array",
    "enum",
    "custom",
    "registered_kinds",
    "make_column_type",
]

logger.debug("schemagen.column_types loaded — %d public symbols.", len(__all__))
