# File: schemagen/emitters.py
"""
SchemaGen - Dialect Emitters
=============================
Renders tables, indexes and constraints as schema text for the four
supported dialects.

Pipeline per column:

    Column ──apply_column_flags──► ColumnType (base + modifier chain)
           ──base emitter──► fragment ──dialect modifier rules──► column text

Modifier rendering differs per dialect:

* **sql** renders modifiers in a canonical order (NULL/NOT NULL, UNIQUE,
  DEFAULT, identity) regardless of how the chain was built; the primary key
  is always a table-level clause.
* **drizzle** and **prisma** render the chain in application order.
* **convex** wraps nullable types in ``v.optional`` and cannot express
  unique or default; those become warning diagnostics.

Coverage problems (a type without an emitter for the requested dialect, a
modifier the dialect cannot express) never raise: the emitter logs a warning,
records a ``Diagnostic`` and keeps going.  Structural problems (no primary
key, unresolved column names) raise ``SchemaStructuralError`` subclasses.

Output is deterministic: same inputs, byte-identical text.  Callable
defaults are rendered as type-generated expressions and never invoked.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from schemagen.errors import (
    MissingPrimaryKeyError,
    PrimaryKeyConflictError,
    UnknownDialectError,
    UnresolvedReferenceError,
)
from schemagen.modifiers import apply_column_flags
from schemagen.models import (
    DEFAULT_OPTIONS,
    Column,
    ColumnType,
    ConstraintType,
    Dialect,
    DialectOptions,
    Emitter,
    Entity,
    GeneratedKind,
    Index,
    IndexType,
    ModifierKind,
    SqlVariant,
    Table,
)
from schemagen.utils import (
    build_ts_import_block,
    js_literal,
    js_string_literal,
    prisma_literal,
    sql_literal,
    sql_string_literal,
    to_camel_case,
    to_pascal_case,
)
from schemagen.validators import DiagnosticLog

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.emitters")

# ---------------------------------------------------------------------------
# Diagnostic codes
# ---------------------------------------------------------------------------

EMITTER_FALLBACK: str = "EMITTER_FALLBACK"
MODIFIER_UNSUPPORTED: str = "MODIFIER_UNSUPPORTED"
DEFAULT_OUT_OF_DOMAIN: str = "DEFAULT_OUT_OF_DOMAIN"
INDEX_OPTION_DROPPED: str = "INDEX_OPTION_DROPPED"

# Expressions used for callable defaults, keyed by column type name
_SQL_GENERATED_DEFAULTS: Dict[str, Dict[SqlVariant, str]] = {
    "uuid": {
        SqlVariant.POSTGRES: "gen_random_uuid()",
        SqlVariant.MYSQL: "(UUID())",
    },
    "timestamp": {
        SqlVariant.POSTGRES: "CURRENT_TIMESTAMP",
        SqlVariant.MYSQL: "CURRENT_TIMESTAMP",
        SqlVariant.SQLITE: "CURRENT_TIMESTAMP",
    },
    "date": {
        SqlVariant.POSTGRES: "CURRENT_DATE",
        SqlVariant.MYSQL: "(CURRENT_DATE)",
        SqlVariant.SQLITE: "CURRENT_DATE",
    },
}

_DRIZZLE_GENERATED_DEFAULTS: Dict[str, str] = {
    "uuid": ".defaultRandom()",
    "timestamp": ".defaultNow()",
    "date": ".defaultNow()",
}

_PRISMA_GENERATED_DEFAULTS: Dict[str, str] = {
    "uuid": "@default(uuid())",
    "timestamp": "@default(now())",
    "date": "@default(now())",
}

_PRISMA_PROVIDERS: Dict[SqlVariant, str] = {
    SqlVariant.POSTGRES: "postgresql",
    SqlVariant.MYSQL: "mysql",
    SqlVariant.SQLITE: "sqlite",
}

_PRISMA_INDEX_TYPES: Dict[IndexType, str] = {
    IndexType.BTREE: "BTree",
    IndexType.HASH: "Hash",
    IndexType.GIST: "Gist",
    IndexType.GIN: "Gin",
}

# Free function calls in drizzle output (method calls excluded)
_TS_CALL_RE: re.Pattern[str] = re.compile(r"(?<![.\w])([A-Za-z_]\w*)\(")

# Literal text skipped when collecting drizzle imports
_TS_OPAQUE_RE: re.Pattern[str] = re.compile(
    r"sql`[^`]*`|'(?:[^'\\\n]|\\.)*'|\"(?:[^\"\\\n]|\\.)*\"|//[^\n]*"
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def parse_dialect(tag: Union[Dialect, str]) -> Dialect:
    """Resolve a dialect tag; unknown tags raise ``UnknownDialectError``."""
    if isinstance(tag, Dialect):
        return tag
    try:
        return Dialect(str(tag).strip().lower())
    except ValueError as exc:
        raise UnknownDialectError(
            f"Unknown dialect '{tag}'. Expected one of: "
            f"{', '.join(d.value for d in Dialect)}.",
            subject=str(tag),
        ) from exc


def _variant(options: Optional[DialectOptions]) -> SqlVariant:
    return (options or DEFAULT_OPTIONS).sql_variant


def _warn(
    diagnostics: Optional[DiagnosticLog],
    code: str,
    message: str,
    **context: Any,
) -> None:
    logger.warning("%s: %s", code, message)
    if diagnostics is not None:
        diagnostics.add_warning(code, message, context)


def _base_fragment(
    column_type: ColumnType,
    dialect: Dialect,
    name: str,
    options: Optional[DialectOptions],
    diagnostics: Optional[DiagnosticLog],
    fallback: str,
) -> str:
    emitter: Optional[Emitter] = column_type.emitter_for(dialect)
    if emitter is None:
        _warn(
            diagnostics,
            EMITTER_FALLBACK,
            f"Column type '{column_type.type_name}' has no {dialect.value} emitter; "
            f"column '{name}' rendered as '{fallback}'.",
            column=name,
            dialect=dialect.value,
            type_name=column_type.type_name,
        )
        return fallback
    return emitter(name, options)


def _serialized_default(
    column_type: ColumnType,
    value: Any,
    name: str,
    diagnostics: Optional[DiagnosticLog],
) -> Any:
    """Pass a literal default through the type's serializer."""
    if column_type.validate_value(value):
        return column_type.serialize(value)
    _warn(
        diagnostics,
        DEFAULT_OUT_OF_DOMAIN,
        f"Default {value!r} of column '{name}' is outside the domain of "
        f"'{column_type.type_name}'; rendered unserialized.",
        column=name,
        type_name=column_type.type_name,
    )
    return value


def _identity_kind(value: Any) -> GeneratedKind:
    if isinstance(value, bool):
        return GeneratedKind.BY_DEFAULT
    return GeneratedKind(value)


def _check_references(table: Table) -> None:
    for name in table.primary_key:
        if name not in table.columns:
            raise UnresolvedReferenceError(
                f"Primary key column '{name}' does not exist in table '{table.name}'.",
                entity=table.name,
                subject=name,
            )
    for group in table.unique_constraints:
        for name in group:
            if name not in table.columns:
                raise UnresolvedReferenceError(
                    f"Unique constraint column '{name}' does not exist in table "
                    f"'{table.name}'.",
                    entity=table.name,
                    subject=name,
                )


def resolve_primary_key(table: Table) -> Tuple[str, ...]:
    """
    Reconcile the table-level key with the per-column ``primary`` flags.

    Raises:
        MissingPrimaryKeyError: neither form declares a key.
        PrimaryKeyConflictError: several flagged columns without a table-level
            key, or the two forms disagree.
    """
    _check_references(table)
    declared: Tuple[str, ...] = table.primary_key
    flagged: List[str] = table.flagged_primary_columns
    if not declared:
        if not flagged:
            raise MissingPrimaryKeyError(
                f"Table '{table.name}' declares no primary key.",
                entity=table.name,
            )
        if len(flagged) > 1:
            raise PrimaryKeyConflictError(
                f"Table '{table.name}' flags {len(flagged)} primary columns "
                f"({', '.join(flagged)}); declare composite keys at table level.",
                entity=table.name,
                context={"flagged": flagged},
            )
        return tuple(flagged)
    if flagged and set(flagged) != set(declared):
        raise PrimaryKeyConflictError(
            f"Table '{table.name}' declares primary key ({', '.join(declared)}) but "
            f"flags ({', '.join(flagged)}).",
            entity=table.name,
            context={"declared": list(declared), "flagged": flagged},
        )
    return declared


def _orm_column_type(name: str, column: Column, primary_key: Tuple[str, ...]) -> ColumnType:
    """Resolved type for ORM dialects: only a single-column key is inline."""
    single: bool = len(primary_key) == 1 and primary_key[0] == name
    if column.primary != single:
        column = column.model_copy(update={"primary": single})
    return apply_column_flags(column)


def entity_indexes(entity: Entity) -> List[Index]:
    """Declared indexes plus one per ``indexed`` column not already covered."""
    indexes: List[Index] = list(entity.indexes)
    covered: Set[Tuple[str, ...]] = {index.columns for index in indexes}
    table: Table = entity.table
    for name, column in table.columns.items():
        if column.indexed and (name,) not in covered:
            indexes.append(
                Index(name=f"idx_{table.name}_{name}", table_name=table.name, columns=(name,))
            )
    return indexes


# ---------------------------------------------------------------------------
# Dialect renderers
# ---------------------------------------------------------------------------


class _DialectRenderer:
    """Column, table and bundle rendering for one dialect."""

    dialect: Dialect

    def fallback(self, name: str) -> str:
        raise NotImplementedError

    def base(
        self,
        name: str,
        column_type: ColumnType,
        options: Optional[DialectOptions],
        diagnostics: Optional[DiagnosticLog],
    ) -> str:
        return _base_fragment(
            column_type, self.dialect, name, options, diagnostics, self.fallback(name)
        )

    def column(
        self,
        name: str,
        column_type: ColumnType,
        options: Optional[DialectOptions],
        diagnostics: Optional[DiagnosticLog],
        generated_as: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def table(
        self,
        table: Table,
        options: Optional[DialectOptions],
        diagnostics: Optional[DiagnosticLog],
        indexes: Sequence[Index] = (),
        model_name: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def bundle(self, tables: Sequence[Table], rendered: List[str], options: Optional[DialectOptions]) -> str:
        return "\n\n".join(rendered)


class _SqlRenderer(_DialectRenderer):
    dialect = Dialect.SQL

    def fallback(self, name: str) -> str:
        return f"{name} TEXT"

    def column(self, name, column_type, options, diagnostics, generated_as=None, comment=None) -> str:
        variant: SqlVariant = _variant(options)
        mods: Dict[ModifierKind, Any] = {mod.kind: mod.value for mod in column_type.modifiers}
        parts: List[str] = [self.base(name, column_type, options, diagnostics)]

        if ModifierKind.NULLABLE in mods:
            parts.append("NULL" if mods[ModifierKind.NULLABLE] else "NOT NULL")
        if mods.get(ModifierKind.UNIQUE):
            parts.append("UNIQUE")
        if ModifierKind.DEFAULT in mods:
            clause: Optional[str] = self._default(name, column_type, mods[ModifierKind.DEFAULT], variant, diagnostics)
            if clause:
                parts.append(clause)
        if mods.get(ModifierKind.AUTO_INCREMENT):
            identity: Optional[str] = self._identity(mods[ModifierKind.AUTO_INCREMENT], variant)
            if identity:
                parts.append(identity)
        if generated_as:
            parts.append(f"GENERATED ALWAYS AS ({generated_as}) STORED")
        if comment and variant == SqlVariant.MYSQL:
            parts.append(f"COMMENT {sql_string_literal(comment)}")
        return " ".join(parts)

    @staticmethod
    def _default(
        name: str,
        column_type: ColumnType,
        value: Any,
        variant: SqlVariant,
        diagnostics: Optional[DiagnosticLog],
    ) -> Optional[str]:
        if callable(value):
            expression: Optional[str] = _SQL_GENERATED_DEFAULTS.get(column_type.type_name, {}).get(variant)
            if expression is None:
                _warn(
                    diagnostics,
                    MODIFIER_UNSUPPORTED,
                    f"Generated default of column '{name}' ({column_type.type_name}) "
                    f"has no {variant.value} expression; omitted.",
                    column=name,
                    dialect=Dialect.SQL.value,
                )
                return None
            return f"DEFAULT {expression}"
        serialized: Any = _serialized_default(column_type, value, name, diagnostics)
        if column_type.type_name == "decimal" and isinstance(serialized, str):
            return f"DEFAULT {serialized}"
        return f"DEFAULT {sql_literal(serialized)}"

    @staticmethod
    def _identity(value: Any, variant: SqlVariant) -> Optional[str]:
        if variant == SqlVariant.MYSQL:
            return "AUTO_INCREMENT"
        if variant == SqlVariant.SQLITE:
            # INTEGER PRIMARY KEY is already the rowid alias
            return None
        if _identity_kind(value) == GeneratedKind.ALWAYS:
            return "GENERATED ALWAYS AS IDENTITY"
        return "GENERATED BY DEFAULT AS IDENTITY"

    def table(self, table, options, diagnostics, indexes=(), model_name=None) -> str:
        variant: SqlVariant = _variant(options)
        if not table.primary_key:
            raise MissingPrimaryKeyError(
                f"Table '{table.name}' has no table-level primary key.",
                entity=table.name,
            )
        resolve_primary_key(table)

        entries: List[Tuple[List[str], str]] = []
        for name, column in table.columns.items():
            comments: List[str] = []
            if column.comment and variant == SqlVariant.SQLITE:
                comments.append(f"-- {column.comment}")
            entries.append(
                (
                    comments,
                    self.column(
                        name,
                        apply_column_flags(column),
                        options,
                        diagnostics,
                        generated_as=column.generated_as,
                        comment=column.comment,
                    ),
                )
            )
        entries.append(([], f"PRIMARY KEY ({', '.join(table.primary_key)})"))
        for group in table.unique_constraints:
            entries.append(([], f"UNIQUE ({', '.join(group)})"))
        for check in table.check_constraints:
            entries.append(([], f"CONSTRAINT {check.name} CHECK ({check.expression})"))

        lines: List[str] = []
        if table.comment and variant == SqlVariant.SQLITE:
            lines.append(f"-- {table.comment}")
        lines.append(f"CREATE TABLE {table.name} (")
        last: int = len(entries) - 1
        for position, (comments, text) in enumerate(entries):
            lines.extend(f"  {comment}" for comment in comments)
            lines.append(f"  {text}{',' if position < last else ''}")
        if table.comment and variant == SqlVariant.MYSQL:
            lines.append(f") COMMENT={sql_string_literal(table.comment)};")
        else:
            lines.append(");")

        if variant == SqlVariant.POSTGRES:
            if table.comment:
                lines.append(f"COMMENT ON TABLE {table.name} IS {sql_string_literal(table.comment)};")
            for name, column in table.columns.items():
                if column.comment:
                    lines.append(
                        f"COMMENT ON COLUMN {table.name}.{name} IS "
                        f"{sql_string_literal(column.comment)};"
                    )
        return "\n".join(lines)


class _DrizzleRenderer(_DialectRenderer):
    dialect = Dialect.DRIZZLE

    def fallback(self, name: str) -> str:
        return f"text('{name}')"

    def column(self, name, column_type, options, diagnostics, generated_as=None) -> str:
        chain: str = self.base(name, column_type, options, diagnostics)
        for mod in column_type.modifiers:
            if mod.kind == ModifierKind.NULLABLE:
                if not mod.value:
                    chain += ".notNull()"
            elif mod.kind == ModifierKind.UNIQUE:
                if mod.value:
                    chain += ".unique()"
            elif mod.kind == ModifierKind.PRIMARY_KEY:
                if mod.value:
                    chain += ".primaryKey()"
            elif mod.kind == ModifierKind.DEFAULT:
                chain += self._default(name, column_type, mod.value, diagnostics)
            elif mod.kind == ModifierKind.AUTO_INCREMENT:
                if mod.value:
                    if _identity_kind(mod.value) == GeneratedKind.ALWAYS:
                        chain += ".generatedAlwaysAsIdentity()"
                    else:
                        chain += ".generatedByDefaultAsIdentity()"
        if generated_as:
            chain += f".generatedAlwaysAs(sql`{generated_as}`)"
        return chain

    @staticmethod
    def _default(
        name: str,
        column_type: ColumnType,
        value: Any,
        diagnostics: Optional[DiagnosticLog],
    ) -> str:
        if callable(value):
            generated: Optional[str] = _DRIZZLE_GENERATED_DEFAULTS.get(column_type.type_name)
            if generated is None:
                _warn(
                    diagnostics,
                    MODIFIER_UNSUPPORTED,
                    f"Generated default of column '{name}' ({column_type.type_name}) "
                    f"has no drizzle form; omitted.",
                    column=name,
                    dialect=Dialect.DRIZZLE.value,
                )
                return ""
            return generated
        serialized: Any = _serialized_default(column_type, value, name, diagnostics)
        if column_type.type_name in ("json", "array") and isinstance(serialized, str):
            return f".default({serialized})"
        return f".default({js_literal(serialized)})"

    @staticmethod
    def _index(index: Index) -> str:
        columns: str = ", ".join(f"table.{c}" for c in index.columns)
        builder: str = "uniqueIndex" if index.unique else "index"
        if index.index_type is not None:
            text: str = f"{builder}('{index.name}').using('{index.index_type.value}', {columns})"
        else:
            text = f"{builder}('{index.name}').on({columns})"
        if index.where:
            text += f".where(sql`{index.where}`)"
        return text

    def table(self, table, options, diagnostics, indexes=(), model_name=None) -> str:
        primary_key: Tuple[str, ...] = resolve_primary_key(table)
        lines: List[str] = []
        if table.comment:
            lines.append(f"// {table.comment}")
        lines.append(f"export const {to_camel_case(table.name)} = pgTable('{table.name}', {{")
        for name, column in table.columns.items():
            if column.comment:
                lines.append(f"  // {column.comment}")
            fragment: str = self.column(
                name,
                _orm_column_type(name, column, primary_key),
                options,
                diagnostics,
                generated_as=column.generated_as,
            )
            lines.append(f"  {name}: {fragment},")

        extras: List[str] = []
        if len(primary_key) > 1:
            extras.append(
                f"primaryKey({{ columns: [{', '.join(f'table.{c}' for c in primary_key)}] }})"
            )
        for group in table.unique_constraints:
            extras.append(
                f"unique('{table.name}_{'_'.join(group)}_unique')"
                f".on({', '.join(f'table.{c}' for c in group)})"
            )
        for check in table.check_constraints:
            extras.append(f"check('{check.name}', sql`{check.expression}`)")
        extras.extend(self._index(index) for index in indexes)

        if extras:
            lines.append("}, (table) => [")
            lines.extend(f"  {extra}," for extra in extras)
            lines.append("]);")
        else:
            lines.append("});")
        return "\n".join(lines)

    def bundle(self, tables, rendered, options) -> str:
        body: str = "\n\n".join(rendered)
        names: Set[str] = {"pgTable"} | set(_TS_CALL_RE.findall(_TS_OPAQUE_RE.sub("", body)))
        names.discard("sql")
        imports: Dict[str, Set[str]] = {"drizzle-orm/pg-core": names}
        if "sql`" in body:
            imports["drizzle-orm"] = {"sql"}
        return f"{build_ts_import_block(imports)}\n\n{body}"


class _PrismaRenderer(_DialectRenderer):
    dialect = Dialect.PRISMA

    def fallback(self, name: str) -> str:
        return f"{name} String"

    def column(self, name, column_type, options, diagnostics, generated_as=None) -> str:
        fragment: str = self.base(name, column_type, options, diagnostics)
        head, _, rest = fragment.partition(" ")
        type_token, _, base_attributes = rest.partition(" ")
        attributes: List[str] = [base_attributes] if base_attributes else []
        optional: str = ""

        for mod in column_type.modifiers:
            if mod.kind == ModifierKind.NULLABLE:
                optional = "?" if mod.value else ""
            elif mod.kind == ModifierKind.UNIQUE:
                if mod.value:
                    attributes.append("@unique")
            elif mod.kind == ModifierKind.PRIMARY_KEY:
                if mod.value:
                    attributes.append("@id")
            elif mod.kind == ModifierKind.DEFAULT:
                default: Optional[str] = self._default(name, column_type, mod.value, diagnostics)
                if default:
                    attributes.append(default)
            elif mod.kind == ModifierKind.AUTO_INCREMENT:
                if mod.value:
                    attributes.append("@default(autoincrement())")
        if generated_as:
            _warn(
                diagnostics,
                MODIFIER_UNSUPPORTED,
                f"Computed column '{name}' cannot be expressed in prisma; expression dropped.",
                column=name,
                dialect=self.dialect.value,
            )
        return " ".join([head, type_token + optional] + attributes)

    @staticmethod
    def _default(
        name: str,
        column_type: ColumnType,
        value: Any,
        diagnostics: Optional[DiagnosticLog],
    ) -> Optional[str]:
        if callable(value):
            generated: Optional[str] = _PRISMA_GENERATED_DEFAULTS.get(column_type.type_name)
            if generated is None:
                _warn(
                    diagnostics,
                    MODIFIER_UNSUPPORTED,
                    f"Generated default of column '{name}' ({column_type.type_name}) "
                    f"has no prisma form; omitted.",
                    column=name,
                    dialect=Dialect.PRISMA.value,
                )
            return generated
        serialized: Any = _serialized_default(column_type, value, name, diagnostics)
        return f"@default({prisma_literal(serialized)})"

    def _index(self, index: Index, diagnostics: Optional[DiagnosticLog]) -> str:
        attribute: str = "@@unique" if index.unique else "@@index"
        args: List[str] = [f"[{', '.join(index.columns)}]", f'map: "{index.name}"']
        if index.index_type is not None:
            args.append(f"type: {_PRISMA_INDEX_TYPES[index.index_type]}")
        if index.where:
            _warn(
                diagnostics,
                INDEX_OPTION_DROPPED,
                f"Partial index '{index.name}' cannot be expressed in prisma; WHERE dropped.",
                index=index.name,
                dialect=self.dialect.value,
            )
        return f"{attribute}({', '.join(args)})"

    def table(self, table, options, diagnostics, indexes=(), model_name=None) -> str:
        primary_key: Tuple[str, ...] = resolve_primary_key(table)
        lines: List[str] = []
        if table.comment:
            lines.append(f"/// {table.comment}")
        lines.append(f"model {model_name or to_pascal_case(table.name)} {{")
        for name, column in table.columns.items():
            if column.comment:
                lines.append(f"  /// {column.comment}")
            fragment: str = self.column(
                name,
                _orm_column_type(name, column, primary_key),
                options,
                diagnostics,
                generated_as=column.generated_as,
            )
            lines.append(f"  {fragment}")

        block: List[str] = []
        if len(primary_key) > 1:
            block.append(f"@@id([{', '.join(primary_key)}])")
        for group in table.unique_constraints:
            block.append(f"@@unique([{', '.join(group)}])")
        block.extend(self._index(index, diagnostics) for index in indexes)
        for check in table.check_constraints:
            _warn(
                diagnostics,
                MODIFIER_UNSUPPORTED,
                f"Check constraint '{check.name}' of table '{table.name}' cannot be "
                f"expressed in prisma; kept as a comment.",
                table=table.name,
                constraint=check.name,
            )
            block.append(f"// CHECK {check.name}: {check.expression}")
        block.append(f'@@map("{table.name}")')

        lines.append("")
        lines.extend(f"  {item}" for item in block)
        lines.append("}")
        return "\n".join(lines)

    def bundle(self, tables, rendered, options) -> str:
        header: List[str] = [
            "generator client {",
            '  provider = "prisma-client-js"',
            "}",
            "",
            "datasource db {",
            f'  provider = "{_PRISMA_PROVIDERS[_variant(options)]}"',
            '  url      = env("DATABASE_URL")',
            "}",
        ]
        return "\n".join(header) + "\n\n" + "\n\n".join(rendered)


class _ConvexRenderer(_DialectRenderer):
    dialect = Dialect.CONVEX

    def fallback(self, name: str) -> str:
        return f"{name}: v.string()"

    def column(self, name, column_type, options, diagnostics, generated_as=None) -> str:
        key, _, validator = self.base(name, column_type, options, diagnostics).partition(": ")
        for mod in column_type.modifiers:
            if mod.kind == ModifierKind.NULLABLE:
                if mod.value:
                    validator = f"v.optional({validator})"
            elif mod.kind in (ModifierKind.UNIQUE, ModifierKind.DEFAULT):
                if mod.kind == ModifierKind.DEFAULT or mod.value:
                    _warn(
                        diagnostics,
                        MODIFIER_UNSUPPORTED,
                        f"Modifier '{mod.kind.value}' of column '{name}' cannot be "
                        f"expressed in convex; dropped.",
                        column=name,
                        dialect=self.dialect.value,
                    )
            else:
                logger.debug("convex: '%s' on column '%s' is implicit, ignored.", mod.kind.value, name)
        if generated_as:
            _warn(
                diagnostics,
                MODIFIER_UNSUPPORTED,
                f"Computed column '{name}' cannot be expressed in convex; expression dropped.",
                column=name,
                dialect=self.dialect.value,
            )
        return f"{key}: {validator}"

    def _index(self, index: Index, diagnostics: Optional[DiagnosticLog]) -> str:
        dropped: List[str] = []
        if index.unique:
            dropped.append("unique")
        if index.where:
            dropped.append("where")
        if index.index_type is not None:
            dropped.append("index_type")
        if dropped:
            _warn(
                diagnostics,
                INDEX_OPTION_DROPPED,
                f"Index '{index.name}': {', '.join(dropped)} not supported by convex; dropped.",
                index=index.name,
                dialect=self.dialect.value,
            )
        columns: str = ", ".join(js_string_literal(c) for c in index.columns)
        return f".index({js_string_literal(index.name)}, [{columns}])"

    def table(self, table, options, diagnostics, indexes=(), model_name=None) -> str:
        primary_key: Tuple[str, ...] = resolve_primary_key(table)
        lines: List[str] = []
        if table.comment:
            lines.append(f"// {table.comment}")
        lines.append(f"export const {to_camel_case(table.name)} = defineTable({{")
        for name, column in table.columns.items():
            if column.comment:
                lines.append(f"  // {column.comment}")
            fragment: str = self.column(
                name,
                _orm_column_type(name, column, primary_key),
                options,
                diagnostics,
                generated_as=column.generated_as,
            )
            lines.append(f"  {fragment},")
        lines.append("})")
        lines.extend(f"  {self._index(index, diagnostics)}" for index in indexes)

        for group in table.unique_constraints:
            _warn(
                diagnostics,
                MODIFIER_UNSUPPORTED,
                f"Unique constraint ({', '.join(group)}) of table '{table.name}' "
                f"cannot be expressed in convex; dropped.",
                table=table.name,
            )
        for check in table.check_constraints:
            _warn(
                diagnostics,
                MODIFIER_UNSUPPORTED,
                f"Check constraint '{check.name}' of table '{table.name}' cannot be "
                f"expressed in convex; dropped.",
                table=table.name,
                constraint=check.name,
            )
        return "\n".join(lines)

    def bundle(self, tables, rendered, options) -> str:
        header: str = build_ts_import_block(
            {"convex/server": {"defineSchema", "defineTable"}, "convex/values": {"v"}}
        )
        members: List[str] = [f"  {t.name}: {to_camel_case(t.name)}," for t in tables]
        footer: str = "export default defineSchema({\n" + "\n".join(members) + "\n});"
        return f"{header}\n\n" + "\n\n".join(rendered) + f"\n\n{footer}"


_RENDERERS: Dict[Dialect, _DialectRenderer] = {
    Dialect.SQL: _SqlRenderer(),
    Dialect.DRIZZLE: _DrizzleRenderer(),
    Dialect.PRISMA: _PrismaRenderer(),
    Dialect.CONVEX: _ConvexRenderer(),
}

_UNCOVERED: Set[Dialect] = set(Dialect) - set(_RENDERERS)
if _UNCOVERED:
    raise RuntimeError(f"No renderer registered for dialects: {sorted(d.value for d in _UNCOVERED)}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def column_emitter(
    column_type: ColumnType,
    dialect: Union[Dialect, str],
    diagnostics: Optional[DiagnosticLog] = None,
) -> Emitter:
    """
    Compose the base emitter of *column_type* with its modifier chain.

    The returned function has the ordinary emitter signature
    ``(column_name, options) -> str``.
    """
    renderer: _DialectRenderer = _RENDERERS[parse_dialect(dialect)]

    def emit(name: str, options: Optional[DialectOptions] = None) -> str:
        return renderer.column(name, column_type, options, diagnostics)

    return emit


def sql_column_definition(
    name: str,
    column: Column,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> str:
    """One column of a ``CREATE TABLE`` body, flags resolved."""
    return _RENDERERS[Dialect.SQL].column(
        name,
        apply_column_flags(column),
        options,
        diagnostics,
        generated_as=column.generated_as,
        comment=column.comment,
    )


def sql_base_type(
    column_type: ColumnType,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> str:
    """The bare SQL type of *column_type*, e.g. ``UUID`` or ``VARCHAR(255)``."""
    placeholder: str = "__column__"
    fragment: str = _base_fragment(
        column_type.base, Dialect.SQL, placeholder, options, diagnostics, f"{placeholder} TEXT"
    )
    sql_type: str = fragment[len(placeholder) + 1:] if fragment.startswith(placeholder + " ") else fragment
    return sql_type.split(" CHECK (", 1)[0]


def emit_table(
    table: Table,
    dialect: Union[Dialect, str],
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> str:
    """
    Render one table as schema text for *dialect*.

    Raises:
        UnknownDialectError: unknown dialect tag.
        MissingPrimaryKeyError / PrimaryKeyConflictError: see ``resolve_primary_key``
            (the sql dialect requires a table-level key).
        UnresolvedReferenceError: key or unique columns not in the table.
    """
    resolved: Dialect = parse_dialect(dialect)
    logger.debug("Emitting table '%s' for %s", table.name, resolved.value)
    return _RENDERERS[resolved].table(table, options, diagnostics)


def emit_tables(
    tables: Sequence[Table],
    dialect: Union[Dialect, str],
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> str:
    """Render several tables as one file with a single header."""
    resolved: Dialect = parse_dialect(dialect)
    renderer: _DialectRenderer = _RENDERERS[resolved]
    rendered: List[str] = [renderer.table(table, options, diagnostics) for table in tables]
    return renderer.bundle(tables, rendered, options)


def emit_indexes(
    entity: Entity,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> List[str]:
    """``CREATE [UNIQUE] INDEX`` statements for the entity's indexes."""
    variant: SqlVariant = _variant(options)
    statements: List[str] = []
    for index in entity_indexes(entity):
        using: str = ""
        trailing_using: str = ""
        where: str = ""
        if index.index_type is not None:
            if variant == SqlVariant.POSTGRES:
                using = f" USING {index.index_type.value}"
            elif variant == SqlVariant.MYSQL and index.index_type in (IndexType.BTREE, IndexType.HASH):
                trailing_using = f" USING {index.index_type.value.upper()}"
            else:
                _warn(
                    diagnostics,
                    INDEX_OPTION_DROPPED,
                    f"Index '{index.name}': type '{index.index_type.value}' not supported "
                    f"by {variant.value}; dropped.",
                    index=index.name,
                    dialect=Dialect.SQL.value,
                )
        if index.where:
            if variant == SqlVariant.MYSQL:
                _warn(
                    diagnostics,
                    INDEX_OPTION_DROPPED,
                    f"Index '{index.name}': partial indexes not supported by mysql; "
                    f"WHERE dropped.",
                    index=index.name,
                    dialect=Dialect.SQL.value,
                )
            else:
                where = f" WHERE {index.where}"
        unique: str = "UNIQUE " if index.unique else ""
        statements.append(
            f"CREATE {unique}INDEX {index.name} ON {index.table_name}{using} "
            f"({', '.join(index.columns)}){trailing_using}{where};"
        )
    return statements


def emit_constraints(entity: Entity) -> List[str]:
    """``ALTER TABLE ... ADD CONSTRAINT`` statements for the entity's constraints."""
    statements: List[str] = []
    for constraint in entity.constraints:
        definition: str = constraint.definition.strip()
        prefix: str = f"ALTER TABLE {constraint.table_name} ADD CONSTRAINT {constraint.name}"
        if constraint.constraint_type == ConstraintType.CHECK:
            statements.append(f"{prefix} CHECK ({definition});")
        elif constraint.constraint_type == ConstraintType.FOREIGN_KEY:
            statements.append(f"{prefix} FOREIGN KEY {definition};")
        else:
            keyword: str = "UNIQUE" if constraint.constraint_type == ConstraintType.UNIQUE else "PRIMARY KEY"
            if not definition.startswith("("):
                definition = f"({definition})"
            statements.append(f"{prefix} {keyword} {definition};")
    return statements


def emit_schema(
    entity: Entity,
    dialect: Union[Dialect, str],
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> str:
    """
    The entity's table plus its indexes: SQL ``CREATE INDEX`` statements, or
    the ORM dialect's own index form inside the table definition.
    """
    resolved: Dialect = parse_dialect(dialect)
    if resolved == Dialect.SQL:
        parts: List[str] = [emit_table(entity.table, resolved, options, diagnostics)]
        parts.extend(emit_indexes(entity, options, diagnostics))
        return "\n\n".join(parts)
    return _RENDERERS[resolved].table(
        entity.table,
        options,
        diagnostics,
        indexes=entity_indexes(entity),
        model_name=to_pascal_case(entity.name.singular),
    )


def bundle_schemas(
    entities: Sequence[Entity],
    rendered: Sequence[str],
    dialect: Union[Dialect, str],
    options: Optional[DialectOptions] = None,
) -> str:
    """Join per-entity schema texts into one file under the dialect's header."""
    resolved: Dialect = parse_dialect(dialect)
    return _RENDERERS[resolved].bundle([e.table for e in entities], list(rendered), options)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EMITTER_FALLBACK",
    "MODIFIER_UNSUPPORTED",
    "DEFAULT_OUT_OF_DOMAIN",
    "INDEX_OPTION_DROPPED",
    "parse_dialect",
    "resolve_primary_key",
    "entity_indexes",
    "column_emitter",
    "sql_column_definition",
    "sql_base_type",
    "emit_table",
    "emit_tables",
    "emit_indexes",
    "emit_constraints",
    "emit_schema",
    "bundle_schemas",
]

logger.debug("schemagen.emitters loaded — %d public symbols.", len(__all__))
