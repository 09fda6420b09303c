"""Validated names that end up inside generated SQL.

Graph names, result columns and column types are the only pieces of a
``cypher()`` call that cannot be sent as bind parameters, so they are
checked once when constructed and rendered through ``psycopg.sql``.
"""

import re
from typing import Iterable, Iterator, Tuple, Union

from psycopg import sql

from age_cypher.errors import InvalidIdentifierError

# NAMEDATALEN - 1
MAX_IDENTIFIER_LENGTH = 63

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_TYPE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")


def _check_identifier(value: str, kind: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_RE.fullmatch(value):
        raise InvalidIdentifierError(f"invalid {kind}: {value!r}")
    if len(value.encode("utf-8")) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(
            f"{kind} longer than {MAX_IDENTIFIER_LENGTH} bytes: {value!r}"
        )
    return value


class GraphName(str):
    """A graph name that is safe to place in SQL text."""

    def __new__(cls, value: str) -> "GraphName":
        if isinstance(value, GraphName):
            return value
        return super().__new__(cls, _check_identifier(value, "graph name"))

    def as_literal(self) -> sql.Literal:
        return sql.Literal(str(self))


class Column(tuple):
    """One ``name type`` entry of a result shape."""

    def __new__(cls, name: str, type_name: str = "agtype") -> "Column":
        _check_identifier(name, "column name")
        if not isinstance(type_name, str) or not _TYPE_NAME_RE.fullmatch(type_name):
            raise InvalidIdentifierError(f"invalid column type: {type_name!r}")
        return super().__new__(cls, (name, type_name))

    @property
    def name(self) -> str:
        return self[0]

    @property
    def type_name(self) -> str:
        return self[1]

    def as_sql(self) -> sql.Composed:
        # type names are pattern-checked and emitted unquoted
        return sql.SQL("{} {}").format(sql.Identifier(self.name), sql.SQL(self.type_name))


class ResultShape:
    """Ordered column list declared for the ``AS (...)`` clause of ``cypher()``.

    The arity and order must match the Cypher ``RETURN`` clause; the database
    reports a mismatch when the statement runs.
    """

    def __init__(self, columns: Iterable[Union[Column, Tuple[str, str], str]]) -> None:
        parsed = []
        for column in columns:
            if isinstance(column, Column):
                parsed.append(column)
            elif isinstance(column, str):
                parsed.append(Column(column))
            else:
                parsed.append(Column(*column))
        if not parsed:
            raise InvalidIdentifierError("result shape must declare at least one column")
        names = [c.name for c in parsed]
        if len(set(names)) != len(names):
            raise InvalidIdentifierError(f"duplicate column names in result shape: {names}")
        self.columns: Tuple[Column, ...] = tuple(parsed)

    @classmethod
    def parse(cls, text: str) -> "ResultShape":
        """Parse the ``"a agtype, b agtype"`` form used in SQL."""
        columns = []
        for chunk in text.split(","):
            parts = chunk.split()
            if len(parts) == 1:
                columns.append(Column(parts[0]))
            elif len(parts) == 2:
                columns.append(Column(parts[0], parts[1]))
            else:
                raise InvalidIdentifierError(f"invalid result shape entry: {chunk.strip()!r}")
        return cls(columns)

    @classmethod
    def coerce(cls, value: Union["ResultShape", str, Iterable]) -> "ResultShape":
        if isinstance(value, ResultShape):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return cls(value)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def as_sql(self) -> sql.Composed:
        return sql.SQL(", ").join(c.as_sql() for c in self.columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResultShape):
            return self.columns == other.columns
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.columns)

    def __repr__(self) -> str:
        body = ", ".join(f"{c.name} {c.type_name}" for c in self.columns)
        return f"ResultShape({body!r})"


DEFAULT_RESULT_SHAPE = ResultShape([Column("r", "agtype")])
