"""Boolean filter expressions and their PostgREST rendering.

The query builder produces an immutable tree of :class:`Leaf`, :class:`And`
and :class:`Or` nodes. Candidate sources translate that tree into their own
query language at the fetch boundary; :func:`render_filter` produces the
PostgREST logical-operator grammar::

    or(and(or(titulo.ilike.*filtro*,...),or(titulo.ilike.*oleo*,...)),sku.ilike.*filtrooleo*)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Union


class Field(str, Enum):
    TITLE = "title"
    SKU = "sku"


@dataclass(frozen=True)
class Leaf:
    field: Field
    pattern: str
    op: str = "ilike"


@dataclass(frozen=True)
class And:
    children: tuple["FilterExpression", ...]


@dataclass(frozen=True)
class Or:
    children: tuple["FilterExpression", ...]


FilterExpression = Union[Leaf, And, Or]

# Characters with a meaning inside PostgREST logic trees or in-lists.
_RESERVED_RE = re.compile(r'[,():"\\\s]')


def quote_value(value: str) -> str:
    """Double-quote a value when it would otherwise break the grammar."""
    if not _RESERVED_RE.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_condition(
    expr: FilterExpression, columns: Mapping[Field, str] | None = None
) -> str:
    if isinstance(expr, Leaf):
        column = (columns or {}).get(expr.field, expr.field.value)
        return f"{column}.{expr.op}.{quote_value(expr.pattern)}"
    keyword = "and" if isinstance(expr, And) else "or"
    inner = ",".join(render_condition(child, columns) for child in expr.children)
    return f"{keyword}({inner})"


def top_conditions(expr: FilterExpression) -> tuple[FilterExpression, ...]:
    """Conditions that sit directly under the top-level ``or``."""
    if isinstance(expr, Or):
        return expr.children
    return (expr,)


def render_filter(
    expr: FilterExpression, columns: Mapping[Field, str] | None = None
) -> str:
    """Render ``expr`` as one ``or(...)`` over its top-level conditions."""
    inner = ",".join(render_condition(child, columns) for child in top_conditions(expr))
    return f"or({inner})"
