"""Database access protocol.

The store talks to tables through this small query surface so the Supabase
client can be swapped for an in-memory fake in tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable


FilterOp = Literal["eq", "neq", "gt", "gte", "lt", "lte", "in", "is", "ilike"]
Row = dict[str, Any]


@dataclass(frozen=True)
class Filter:
    """A column predicate.

    ``in`` takes a sequence, ``is`` takes None/True/False and ``ilike`` uses
    SQL ``%`` wildcards.
    """

    column: str
    op: FilterOp
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> Filter:
        return cls(column, "eq", value)

    @classmethod
    def neq(cls, column: str, value: Any) -> Filter:
        return cls(column, "neq", value)

    @classmethod
    def in_(cls, column: str, values: Sequence[Any]) -> Filter:
        return cls(column, "in", tuple(values))

    @classmethod
    def is_(cls, column: str, value: bool | None) -> Filter:
        return cls(column, "is", value)

    @classmethod
    def ilike(cls, column: str, pattern: str) -> Filter:
        return cls(column, "ilike", pattern)


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


@runtime_checkable
class DatabaseClient(Protocol):
    """Table-level CRUD.

    All methods raise DatabaseClientError on backend failure.
    """

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        columns: str = "*",
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        ...

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        ...

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        ...

    async def upsert(
        self,
        table: str,
        rows: Row | Sequence[Row],
        on_conflict: str | None = None,
    ) -> list[Row]:
        ...

    async def delete(self, table: str, filters: Sequence[Filter]) -> None:
        ...

    async def close(self) -> None:
        ...
