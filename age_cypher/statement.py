"""Building the SQL that wraps a Cypher query in AGE's ``cypher()`` function."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from psycopg import sql

from age_cypher.agtype import Agtype
from age_cypher.errors import InvalidIdentifierError
from age_cypher.identifiers import DEFAULT_RESULT_SHAPE, GraphName, ResultShape

_NO_PARAMETER = object()

_CYPHER_SQL = sql.SQL("SELECT * FROM cypher({graph}, $$ {cypher} $$) AS ({shape})")
_CYPHER_WITH_PARAMETER_SQL = sql.SQL(
    "SELECT * FROM cypher({graph}, $$ {cypher} $$, %s) AS ({shape})"
)


@dataclass(frozen=True)
class CypherQuery:
    """Everything needed to run one Cypher query through ``cypher()``.

    ``parameter`` is a single map (or other structured value) bound as an
    agtype parameter; the Cypher text refers to its keys as ``$key``.
    ``prepare`` is passed to psycopg's ``execute()``.
    """

    graph: Union[GraphName, str]
    cypher: str
    result_shape: Union[ResultShape, str] = DEFAULT_RESULT_SHAPE
    parameter: Any = _NO_PARAMETER
    prepare: Optional[bool] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "graph", GraphName(self.graph))
        object.__setattr__(self, "result_shape", ResultShape.coerce(self.result_shape))
        if not isinstance(self.cypher, str):
            raise InvalidIdentifierError(f"cypher text must be a string, got {type(self.cypher).__name__}")
        if "$$" in self.cypher:
            raise InvalidIdentifierError("cypher text must not contain '$$'")

    @property
    def has_parameter(self) -> bool:
        return self.parameter is not _NO_PARAMETER


@dataclass(frozen=True)
class Statement:
    query: sql.Composed
    params: Optional[Tuple[Agtype, ...]]
    graph: GraphName
    prepare: Optional[bool] = None

    def as_string(self, context=None) -> str:
        return self.query.as_string(context)


def build_statement(query: CypherQuery) -> Statement:
    """Compose ``SELECT * FROM cypher(...) AS (...)`` for ``query``."""
    if query.has_parameter:
        value = query.parameter
        if not isinstance(value, Agtype):
            value = Agtype(value)
        # psycopg parses placeholders whenever params are passed
        cypher = query.cypher.replace("%", "%%")
        composed = _CYPHER_WITH_PARAMETER_SQL.format(
            graph=query.graph.as_literal(),
            cypher=sql.SQL(cypher),
            shape=query.result_shape.as_sql(),
        )
        params: Optional[Tuple[Agtype, ...]] = (value,)
    else:
        composed = _CYPHER_SQL.format(
            graph=query.graph.as_literal(),
            cypher=sql.SQL(query.cypher),
            shape=query.result_shape.as_sql(),
        )
        params = None
    return Statement(composed, params, query.graph, query.prepare)
