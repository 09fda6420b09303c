"""Codec for AGE's ``agtype`` values and its psycopg adapters.

agtype text output is JSON with optional ``::type`` annotations after a
value, e.g. ``{"id": 1, "label": "Person", "properties": {}}::vertex`` or
``[{...}::vertex, {...}::edge, {...}::vertex]::path``. Floats may also be
spelled ``NaN``, ``Infinity`` and ``-Infinity``.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from json.decoder import scanstring
from typing import Any, Dict, List, Optional, Tuple

import psycopg
from psycopg.adapt import Dumper, Loader, PyFormat
from psycopg.types import TypeInfo

from age_cypher.errors import AgeNotInstalledError, AgtypeDecodeError

logger = logging.getLogger(__name__)

AGTYPE_TYPE_NAME = "ag_catalog.agtype"


@dataclass
class Vertex:
    id: int
    label: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.properties[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "properties": self.properties}


@dataclass
class Edge:
    id: int
    label: str
    start_id: int
    end_id: int
    properties: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.properties[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "start_id": self.start_id,
            "end_id": self.end_id,
            "properties": self.properties,
        }


@dataclass
class Path:
    """Alternating vertices and edges, starting and ending with a vertex."""

    elements: List[Any] = field(default_factory=list)

    @property
    def vertices(self) -> List[Vertex]:
        return [e for e in self.elements if isinstance(e, Vertex)]

    @property
    def edges(self) -> List[Edge]:
        return [e for e in self.elements if isinstance(e, Edge)]

    @property
    def length(self) -> int:
        return len(self.edges)


class Agtype:
    """Marks a Python value to be bound as an ``agtype`` parameter."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    @classmethod
    def from_json(cls, text: str) -> "Agtype":
        return cls(decode_agtype(text))

    def to_text(self) -> str:
        return encode_agtype(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Agtype):
            return self.value == other.value
        return NotImplemented

    def __repr__(self) -> str:
        return f"Agtype({self.value!r})"


# --- decoding ---

_WHITESPACE_RE = re.compile(r"[ \t\n\r]*")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][-+]?\d+)?")
_ANNOTATION_RE = re.compile(r"::([A-Za-z_][A-Za-z0-9_]*)")
_CONSTANTS = {
    "true": True,
    "false": False,
    "null": None,
    "NaN": float("nan"),
    "-Infinity": float("-inf"),
    "Infinity": float("inf"),
}


class _AgtypeParser:
    def __init__(self, text: str) -> None:
        self.text = text

    def error(self, message: str, pos: int) -> AgtypeDecodeError:
        return AgtypeDecodeError(message, self.text, pos)

    def skip(self, pos: int) -> int:
        return _WHITESPACE_RE.match(self.text, pos).end()

    def parse(self) -> Any:
        value, pos = self.value(self.skip(0))
        pos = self.skip(pos)
        if pos != len(self.text):
            raise self.error("trailing data", pos)
        return value

    def value(self, pos: int) -> Tuple[Any, int]:
        text = self.text
        raw_number = None
        char = text[pos:pos + 1]
        if char == "{":
            value, pos = self.object(pos + 1)
        elif char == "[":
            value, pos = self.array(pos + 1)
        elif char == '"':
            try:
                value, pos = scanstring(text, pos + 1)
            except json.JSONDecodeError as exc:
                raise self.error(exc.msg, exc.pos) from exc
        else:
            for literal, constant in _CONSTANTS.items():
                if text.startswith(literal, pos):
                    value, pos = constant, pos + len(literal)
                    break
            else:
                match = _NUMBER_RE.match(text, pos)
                if match is None:
                    raise self.error("expected a value", pos)
                raw_number = match.group()
                if match.group(1) or match.group(2):
                    value = float(raw_number)
                else:
                    value = int(raw_number)
                pos = match.end()

        annotation = _ANNOTATION_RE.match(text, pos)
        if annotation is not None:
            value = self.annotate(value, annotation.group(1), raw_number, pos)
            pos = annotation.end()
        return value, pos

    def object(self, pos: int) -> Tuple[Dict[str, Any], int]:
        result: Dict[str, Any] = {}
        pos = self.skip(pos)
        if self.text[pos:pos + 1] == "}":
            return result, pos + 1
        while True:
            if self.text[pos:pos + 1] != '"':
                raise self.error("expected a property name", pos)
            key, pos = self.value(pos)
            pos = self.skip(pos)
            if self.text[pos:pos + 1] != ":":
                raise self.error("expected ':'", pos)
            item, pos = self.value(self.skip(pos + 1))
            result[key] = item
            pos = self.skip(pos)
            char = self.text[pos:pos + 1]
            if char == "}":
                return result, pos + 1
            if char != ",":
                raise self.error("expected ',' or '}'", pos)
            pos = self.skip(pos + 1)

    def array(self, pos: int) -> Tuple[List[Any], int]:
        result: List[Any] = []
        pos = self.skip(pos)
        if self.text[pos:pos + 1] == "]":
            return result, pos + 1
        while True:
            item, pos = self.value(pos)
            result.append(item)
            pos = self.skip(pos)
            char = self.text[pos:pos + 1]
            if char == "]":
                return result, pos + 1
            if char != ",":
                raise self.error("expected ',' or ']'", pos)
            pos = self.skip(pos + 1)

    def annotate(self, value: Any, kind: str, raw_number: Optional[str], pos: int) -> Any:
        if kind == "vertex":
            if not isinstance(value, dict):
                raise self.error("vertex annotation on a non-object", pos)
            return Vertex(value.get("id"), value.get("label"), value.get("properties") or {})
        if kind == "edge":
            if not isinstance(value, dict):
                raise self.error("edge annotation on a non-object", pos)
            return Edge(
                value.get("id"),
                value.get("label"),
                value.get("start_id"),
                value.get("end_id"),
                value.get("properties") or {},
            )
        if kind == "path":
            if not isinstance(value, list):
                raise self.error("path annotation on a non-array", pos)
            return Path(value)
        if kind == "numeric":
            source = raw_number if raw_number is not None else str(value)
            try:
                return Decimal(source)
            except InvalidOperation as exc:
                raise self.error("invalid numeric value", pos) from exc
        return value


def decode_agtype(text: str) -> Any:
    """Decode agtype text into Python values, vertices, edges and paths."""
    return _AgtypeParser(text).parse()


# --- encoding ---

def encode_agtype(value: Any) -> str:
    """Encode a structured value as agtype input text."""
    if isinstance(value, (Vertex, Edge)):
        return encode_agtype(value.as_dict())
    if isinstance(value, Path):
        return encode_agtype(value.elements)
    if isinstance(value, dict):
        items = (
            f"{json.dumps(str(key))}: {encode_agtype(item)}" for key, item in value.items()
        )
        return "{" + ", ".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(encode_agtype(item) for item in value) + "]"
    if isinstance(value, Decimal):
        return f"{value}::numeric"
    try:
        return json.dumps(value)
    except TypeError as exc:
        raise TypeError(f"cannot encode {type(value).__name__} as agtype") from exc


# --- psycopg adapters ---

class AgtypeLoader(Loader):
    def load(self, data):
        if isinstance(data, memoryview):
            data = bytes(data)
        return decode_agtype(data.decode("utf-8"))


class _AgtypeDumper(Dumper):
    def dump(self, obj):
        return obj.to_text().encode("utf-8")


def register_agtype(info: Optional[TypeInfo], context=None) -> None:
    """Register agtype loading and ``Agtype`` dumping on a connection or cursor.

    ``info`` comes from ``TypeInfo.fetch(conn, "ag_catalog.agtype")``. With no
    ``context`` the adapters are registered globally.
    """
    if info is None:
        raise AgeNotInstalledError("type agtype not found; is the age extension installed?")

    info.register(context)
    adapters = context.adapters if context is not None else psycopg.adapters

    dumper = type("AgtypeDumper", (_AgtypeDumper,), {"oid": info.oid})
    adapters.register_dumper(Agtype, dumper)
    adapters.register_loader(info.oid, AgtypeLoader)


def has_agtype_adapters(connection) -> bool:
    try:
        connection.adapters.get_dumper(Agtype, PyFormat.TEXT)
    except psycopg.ProgrammingError:
        return False
    return True


async def ensure_agtype(connection) -> None:
    """Register the agtype adapters on ``connection`` unless already present."""
    if has_agtype_adapters(connection):
        return
    info = await TypeInfo.fetch(connection, AGTYPE_TYPE_NAME)
    register_agtype(info, connection)
    logger.debug("Registered agtype adapters (oid %s)", info.oid)
