"""Run Cypher queries on Apache AGE through psycopg."""

from age_cypher.agtype import (
    Agtype,
    Edge,
    Path,
    Vertex,
    decode_agtype,
    encode_agtype,
    ensure_agtype,
    register_agtype,
)
from age_cypher.config import AgeSettings
from age_cypher.datasource import AgeDataSource
from age_cypher.errors import (
    AgeError,
    AgeNotInstalledError,
    AgtypeDecodeError,
    CypherExecutionError,
    InvalidIdentifierError,
    ResourceReleaseError,
)
from age_cypher.execute import execute_non_query, execute_rows, fetch_all
from age_cypher.graph import check_age_installed, create_graph, drop_graph, ensure_graph, graph_exists
from age_cypher.identifiers import DEFAULT_RESULT_SHAPE, Column, GraphName, ResultShape
from age_cypher.resources import ResourceScope
from age_cypher.statement import CypherQuery, Statement, build_statement

__version__ = "0.1.0"

__all__ = [
    "AgeDataSource",
    "AgeError",
    "AgeNotInstalledError",
    "AgeSettings",
    "Agtype",
    "AgtypeDecodeError",
    "Column",
    "CypherExecutionError",
    "CypherQuery",
    "DEFAULT_RESULT_SHAPE",
    "Edge",
    "GraphName",
    "InvalidIdentifierError",
    "Path",
    "ResourceReleaseError",
    "ResourceScope",
    "ResultShape",
    "Statement",
    "Vertex",
    "build_statement",
    "check_age_installed",
    "create_graph",
    "decode_agtype",
    "drop_graph",
    "encode_agtype",
    "ensure_agtype",
    "ensure_graph",
    "execute_non_query",
    "execute_rows",
    "fetch_all",
    "graph_exists",
    "register_agtype",
]
