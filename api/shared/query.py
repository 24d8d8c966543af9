"""Composable filter predicates for repository queries.

A ``FilterSet`` collects predicates from a closed set of kinds and renders
them as one conjunction of SQLAlchemy clauses. Building a filter set has no
side effects, so the same instance can drive a ``COUNT`` and the paginated
fetch that follows it.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement


class Predicate(ABC):
    """A single filter condition bound to a column expression."""

    @abstractmethod
    def compile(self) -> ColumnElement[bool]:
        pass


@dataclass(frozen=True, eq=False)
class Equals(Predicate):
    column: Any
    value: Any

    def compile(self) -> ColumnElement[bool]:
        return self.column == self.value


@dataclass(frozen=True, eq=False)
class Contains(Predicate):
    """Case-insensitive substring match; ``%`` and ``_`` in the value are literal."""

    column: Any
    value: str

    def compile(self) -> ColumnElement[bool]:
        return self.column.icontains(self.value, autoescape=True)


@dataclass(frozen=True, eq=False)
class TimeAfter(Predicate):
    """Strictly newer than ``moment``."""

    column: Any
    moment: datetime

    def compile(self) -> ColumnElement[bool]:
        return self.column > self.moment


@dataclass(frozen=True, eq=False)
class InList(Predicate):
    column: Any
    values: Sequence[Any]

    def compile(self) -> ColumnElement[bool]:
        return self.column.in_(list(self.values))


@dataclass(frozen=True, eq=False)
class IsNotNull(Predicate):
    column: Any

    def compile(self) -> ColumnElement[bool]:
        return self.column.is_not(None)


class FilterSet:
    """Conjunction of predicates with helpers for optional request fields."""

    def __init__(self, predicates: Optional[Iterable[Predicate]] = None):
        self._predicates: List[Predicate] = list(predicates or [])

    def add(self, predicate: Predicate) -> "FilterSet":
        self._predicates.append(predicate)
        return self

    def equals(self, column: Any, value: Any) -> "FilterSet":
        return self.add(Equals(column, value))

    def equals_if_present(self, column: Any, value: Optional[Any]) -> "FilterSet":
        """Add an equality predicate unless ``value`` is None or an empty string."""
        if value is None or value == "":
            return self
        return self.add(Equals(column, value))

    def contains_if_present(self, column: Any, value: Optional[str]) -> "FilterSet":
        if not value:
            return self
        return self.add(Contains(column, value))

    def newer_than(self, column: Any, moment: datetime) -> "FilterSet":
        return self.add(TimeAfter(column, moment))

    def in_list(self, column: Any, values: Sequence[Any]) -> "FilterSet":
        return self.add(InList(column, values))

    def not_null(self, column: Any) -> "FilterSet":
        return self.add(IsNotNull(column))

    def clauses(self) -> List[ColumnElement[bool]]:
        return [predicate.compile() for predicate in self._predicates]

    def apply(self, stmt: Select) -> Select:
        clauses = self.clauses()
        return stmt.where(*clauses) if clauses else stmt

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)
