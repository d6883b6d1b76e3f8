"""
Typed predicates for PostgREST queries.

Each predicate can apply itself to a supabase/postgrest query builder and render
itself as a filter fragment inside an ``or=(...)`` group.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

# Characters PostgREST treats as syntax inside filter values
_RESERVED = re.compile(r'[,.:()"\\\s]')


def quote_value(value: Any) -> str:
    """Quote a value for use inside an or=() group or an in.() list."""
    text = str(value)
    if not _RESERVED.search(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def contains_pattern(value: str) -> str:
    """ILIKE pattern matching ``value`` anywhere in the column."""
    return f"%{value}%"


def _format_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class Predicate:
    """Base class for query predicates."""

    def apply(self, query: Any) -> Any:
        raise NotImplementedError

    def to_filter(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Predicate):
    column: str
    value: Any

    def apply(self, query: Any) -> Any:
        return query.eq(self.column, self.value)

    def to_filter(self) -> str:
        return f"{self.column}.eq.{quote_value(self.value)}"


@dataclass(frozen=True)
class ILike(Predicate):
    column: str
    pattern: str

    def apply(self, query: Any) -> Any:
        return query.ilike(self.column, self.pattern)

    def to_filter(self) -> str:
        # `*` is the URL-safe wildcard inside logic groups
        return f"{self.column}.ilike.{quote_value(self.pattern.replace('%', '*'))}"


@dataclass(frozen=True)
class Gte(Predicate):
    column: str
    value: float

    def apply(self, query: Any) -> Any:
        return query.gte(self.column, self.value)

    def to_filter(self) -> str:
        return f"{self.column}.gte.{quote_value(_format_number(self.value))}"


@dataclass(frozen=True)
class Lte(Predicate):
    column: str
    value: float

    def apply(self, query: Any) -> Any:
        return query.lte(self.column, self.value)

    def to_filter(self) -> str:
        return f"{self.column}.lte.{quote_value(_format_number(self.value))}"


@dataclass(frozen=True)
class In(Predicate):
    column: str
    values: tuple

    def __init__(self, column: str, values: Iterable[Any]):
        object.__setattr__(self, "column", column)
        object.__setattr__(self, "values", tuple(values))

    def apply(self, query: Any) -> Any:
        return query.in_(self.column, list(self.values))

    def to_filter(self) -> str:
        rendered = ",".join(quote_value(value) for value in self.values)
        return f"{self.column}.in.({rendered})"


@dataclass(frozen=True)
class NotIn(Predicate):
    """
    Exclusion list over a nullable column.

    Plain SQL ``NOT IN`` drops NULL rows; with ``keep_nulls`` the predicate
    renders as ``or=(col.is.null,col.not.in.(...))`` so they survive.
    """
    column: str
    values: tuple
    keep_nulls: bool = True

    def __init__(self, column: str, values: Iterable[Any], keep_nulls: bool = True):
        object.__setattr__(self, "column", column)
        object.__setattr__(self, "values", tuple(values))
        object.__setattr__(self, "keep_nulls", keep_nulls)

    def _not_in_fragment(self) -> str:
        rendered = ",".join(quote_value(value) for value in self.values)
        return f"{self.column}.not.in.({rendered})"

    def apply(self, query: Any) -> Any:
        if self.keep_nulls:
            return query.or_(self.to_filter())
        return query.not_.in_(self.column, list(self.values))

    def to_filter(self) -> str:
        if self.keep_nulls:
            return f"{self.column}.is.null,{self._not_in_fragment()}"
        return self._not_in_fragment()


@dataclass(frozen=True)
class NotNull(Predicate):
    column: str

    def apply(self, query: Any) -> Any:
        return query.not_.is_(self.column, "null")

    def to_filter(self) -> str:
        return f"{self.column}.not.is.null"


@dataclass(frozen=True)
class AnyOf(Predicate):
    """OR-combination of simple predicates."""
    predicates: tuple = field(default_factory=tuple)

    def __init__(self, predicates: Sequence[Predicate]):
        object.__setattr__(self, "predicates", tuple(predicates))

    def apply(self, query: Any) -> Any:
        return query.or_(self.to_filter())

    def to_filter(self) -> str:
        return ",".join(predicate.to_filter() for predicate in self.predicates)


def apply_predicates(query: Any, predicates: Iterable[Predicate]) -> Any:
    """Apply predicates in order; PostgREST ANDs them together."""
    for predicate in predicates:
        query = predicate.apply(query)
    return query
