"""The GraphQL schema served to the query engine, and a field inventory.

``schema.graphql`` ships as package data. :func:`declared_fields` reads it
back into ``{type: {field: type}}`` so the adapter's dispatch tables can be
checked against the schema: every declared property and edge must have a
resolver, and every resolver must correspond to a declared field.
"""

from __future__ import annotations

import re
from functools import cache
from importlib.resources import files

ROOT_QUERY_TYPE = "RootSchemaQuery"
SCALARS = frozenset({"String", "Int", "Float", "Boolean", "ID"})

_BLOCK_STRING_RE = re.compile(r'"""(?:.|\n)*?"""')
_STRING_RE = re.compile(r'"[^"\n]*"')
_ARGS_RE = re.compile(r"\([^)]*\)")
_TYPE_RE = re.compile(
    r"\b(?:type|interface)\s+(?P<name>\w+)(?:\s+implements\s+[\w\s&]+)?\s*\{(?P<body>[^}]*)\}"
)
_FIELD_RE = re.compile(r"^\s*(?P<field>\w+)\s*:\s*(?P<type>[\w\[\]!]+)", re.MULTILINE)


@cache
def load_schema_text() -> str:
    """Raw schema text, as handed to the query engine."""
    return files("indicate").joinpath("schema.graphql").read_text(encoding="utf-8")


def _strip(text: str) -> str:
    text = _BLOCK_STRING_RE.sub("", text)
    text = _STRING_RE.sub("", text)
    text = "\n".join(line.split("#", 1)[0] for line in text.splitlines())
    return _ARGS_RE.sub("", text)


def declared_fields(text: str | None = None) -> dict[str, dict[str, str]]:
    """Map each object/interface type to its fields and their GraphQL types."""
    cleaned = _strip(load_schema_text() if text is None else text)
    result: dict[str, dict[str, str]] = {}
    for match in _TYPE_RE.finditer(cleaned):
        fields = {m.group("field"): m.group("type") for m in _FIELD_RE.finditer(match["body"])}
        result[match["name"]] = fields
    return result


def base_type(type_ref: str) -> str:
    """``[Package!]!`` -> ``Package``."""
    return type_ref.replace("[", "").replace("]", "").replace("!", "")


def property_pairs(text: str | None = None) -> set[tuple[str, str]]:
    """(type, property) for every scalar field outside the root query type."""
    return {
        (type_name, field)
        for type_name, fields in declared_fields(text).items()
        if type_name != ROOT_QUERY_TYPE
        for field, type_ref in fields.items()
        if base_type(type_ref) in SCALARS
    }


def edge_pairs(text: str | None = None) -> set[tuple[str, str]]:
    """(type, edge) for every vertex-valued field outside the root query type."""
    return {
        (type_name, field)
        for type_name, fields in declared_fields(text).items()
        if type_name != ROOT_QUERY_TYPE
        for field, type_ref in fields.items()
        if base_type(type_ref) not in SCALARS
    }


def starting_edges(text: str | None = None) -> set[str]:
    """Edges of the root query type."""
    return set(declared_fields(text).get(ROOT_QUERY_TYPE, {}))
