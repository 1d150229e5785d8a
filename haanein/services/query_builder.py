"""Translate a free-form places query string into a SQLAlchemy query.

    GET /api/places?category=cafe&rating[gte]=3&sort=-rating,name&fields=name,rating&page=2&limit=5

Everything except ``page``, ``sort``, ``limit`` and ``fields`` is a filter.
``field=value`` is an equality test (repeating the key matches any of the
values) and ``field[op]=value`` with op in gt/gte/lt/lte is a range test.
"""
from __future__ import annotations

import operator
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement

from haanein.models.places import Place

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT = "-createdAt"

# Largest value an INTEGER column or LIMIT/OFFSET bind accepts
MAX_INT = 2**63 - 1

OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_PARAM_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[^\]]*)\])?$")


class QueryError(ValueError):
    """Bad filter, sort or projection in a list query."""


def _parse_int(value: str) -> int:
    parsed = int(value)
    if not -MAX_INT - 1 <= parsed <= MAX_INT:
        raise ValueError(f"{value!r} is out of range")
    return parsed


def _parse_datetime(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    # Stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# wire name -> (column, caster)
FILTERABLE: dict[str, tuple[Any, Callable[[str], Any]]] = {
    "name": (Place.name, str),
    "description": (Place.description, str),
    "address": (Place.address, str),
    "category": (Place.category, str),
    "phone": (Place.phone, str),
    "workingHours": (Place.working_hours, str),
    "rating": (Place.rating, float),
    "reviewCount": (Place.review_count, _parse_int),
    "createdBy": (Place.created_by, str),
    "createdAt": (Place.created_at, _parse_datetime),
}

SELECTABLE = (
    "name",
    "description",
    "address",
    "category",
    "categories",
    "phone",
    "workingHours",
    "images",
    "location",
    "rating",
    "reviewCount",
    "createdBy",
    "createdAt",
)


@dataclass
class PlaceQuery:
    filters: list[ColumnElement] = field(default_factory=list)
    order_by: list[ColumnElement] = field(default_factory=list)
    # None means every public field
    fields: tuple[str, ...] | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def apply(self, stmt: Select) -> Select:
        return stmt.where(*self.filters).order_by(*self.order_by).offset(self.offset).limit(self.limit)

    def project(self, item: dict[str, Any]) -> dict[str, Any]:
        if self.fields is None:
            return item
        keep = {"id", *self.fields}
        return {k: v for k, v in item.items() if k in keep}


def _cast(name: str, raw: str) -> Any:
    _, caster = FILTERABLE[name]
    try:
        return caster(raw)
    except (TypeError, ValueError):
        raise QueryError(f"Invalid value {raw!r} for field {name!r}") from None


def parse_filters(params: Iterable[tuple[str, str]]) -> list[ColumnElement]:
    equals: dict[str, list[Any]] = {}
    clauses: list[ColumnElement] = []

    for key, raw in params:
        if key in RESERVED_PARAMS:
            continue
        m = _PARAM_RE.match(key)
        if not m:
            raise QueryError(f"Malformed filter parameter {key!r}")
        name, op = m.group("field"), m.group("op")
        if name not in FILTERABLE:
            raise QueryError(f"Unknown filter field {name!r}")

        column, _ = FILTERABLE[name]
        value = _cast(name, raw)

        if op is None:
            equals.setdefault(name, []).append(value)
            continue
        if op not in OPERATORS:
            raise QueryError(f"Unknown operator {op!r} for field {name!r}; use one of gt, gte, lt, lte")
        clauses.append(OPERATORS[op](column, value))

    for name, values in equals.items():
        column, _ = FILTERABLE[name]
        clauses.append(column == values[0] if len(values) == 1 else column.in_(values))
    return clauses


def parse_sort(sort: str | None) -> list[ColumnElement]:
    order_by: list[ColumnElement] = []
    for token in (sort or DEFAULT_SORT).split(","):
        token = token.strip()
        if not token:
            continue
        descending = token.startswith("-")
        name = token.lstrip("-")
        if name not in FILTERABLE:
            raise QueryError(f"Unknown sort field {name!r}")
        column, _ = FILTERABLE[name]
        order_by.append(column.desc() if descending else column.asc())
    # stable pages when sort keys tie
    order_by.append(Place.id.asc())
    return order_by


def parse_fields(fields: str | None) -> tuple[str, ...] | None:
    if not fields:
        return None
    tokens = [t.strip() for t in fields.split(",") if t.strip()]
    if not tokens:
        return None

    excluded = [t for t in tokens if t.startswith("-")]
    if excluded and len(excluded) != len(tokens):
        raise QueryError("Projection cannot have a mix of inclusion and exclusion")

    names = [t.lstrip("-") for t in tokens]
    for name in names:
        if name != "id" and name not in SELECTABLE:
            raise QueryError(f"Unknown field {name!r} in fields")

    if excluded:
        return tuple(f for f in SELECTABLE if f not in names)
    return tuple(n for n in names if n != "id")


def _parse_positive(raw: str | None, default: int, name: str) -> int:
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    if value < 0:
        raise QueryError(f"{name} must be a positive integer")
    if value > MAX_INT:
        raise QueryError(f"{name} is too large")
    return value or default


def build_place_query(params: Iterable[tuple[str, str]]) -> PlaceQuery:
    items = list(params)
    # last one wins for the reserved keys, like a plain dict lookup
    reserved = {k: v for k, v in items if k in RESERVED_PARAMS}

    query = PlaceQuery(
        filters=parse_filters(items),
        order_by=parse_sort(reserved.get("sort")),
        fields=parse_fields(reserved.get("fields")),
        page=_parse_positive(reserved.get("page"), DEFAULT_PAGE, "page"),
        limit=_parse_positive(reserved.get("limit"), DEFAULT_LIMIT, "limit"),
    )
    if query.offset > MAX_INT:
        raise QueryError("page is too large for this limit")
    return query
