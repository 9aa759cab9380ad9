"""SQLAlchemy translation of predicate trees and the SQL listing backend."""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from sqlalchemy import ColumnElement, Select, and_, false, func, not_, or_, select, true
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from betaintel.listing.predicates import (
    AllOf,
    AnyOf,
    Between,
    Comparison,
    Operator,
    Predicate,
)
from betaintel.listing.resources import ResourceSpec
from betaintel.listing.sorting import ResolvedSort

ESCAPE_CHAR = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return (
        value.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
        .replace("%", f"{ESCAPE_CHAR}%")
        .replace("_", f"{ESCAPE_CHAR}_")
    )


def _comparison_clause(column: ColumnElement, op: Operator, value: Any) -> ColumnElement:
    if op is Operator.EQUALS:
        return column == value
    if op is Operator.NOT_EQUALS:
        # NULLs are "not equal" to anything, matching the in-memory backend
        return or_(column != value, column.is_(None))
    if op is Operator.GREATER_THAN:
        return column > value
    if op is Operator.LESS_THAN:
        return column < value

    text = escape_like(str(value))
    if op is Operator.CONTAINS:
        return column.ilike(f"%{text}%", escape=ESCAPE_CHAR)
    if op is Operator.NOT_CONTAINS:
        return or_(not_(column.ilike(f"%{text}%", escape=ESCAPE_CHAR)), column.is_(None))
    if op is Operator.STARTS_WITH:
        return column.ilike(f"{text}%", escape=ESCAPE_CHAR)
    if op is Operator.ENDS_WITH:
        return column.ilike(f"%{text}", escape=ESCAPE_CHAR)
    raise ValueError(f"Unsupported operator: {op}")


def predicate_to_sql(predicate: Predicate, columns: Mapping[str, ColumnElement]) -> ColumnElement:
    """Translate a predicate tree into a SQL boolean expression.

    Every field must be present in ``columns``; the compiler only emits
    allow-listed fields so a miss here is a programming error.
    """
    if isinstance(predicate, AllOf):
        if not predicate.children:
            return true()
        return and_(*(predicate_to_sql(child, columns) for child in predicate.children))
    if isinstance(predicate, AnyOf):
        if not predicate.children:
            return true()
        return or_(*(predicate_to_sql(child, columns) for child in predicate.children))
    if isinstance(predicate, Between):
        return columns[predicate.field].between(predicate.lower, predicate.upper)
    if isinstance(predicate, Comparison):
        return _comparison_clause(columns[predicate.field], predicate.op, predicate.value)
    return false()


@dataclass(frozen=True)
class SQLSource:
    """How one resource is read from the relational store.

    ``filter_columns`` back predicate fields (WHERE), ``sort_columns`` back
    sort fields (ORDER BY, aggregates allowed) and ``serialize`` turns a
    result row into the resource's response shape.
    """

    statement: Callable[[], Select]
    filter_columns: Mapping[str, ColumnElement]
    sort_columns: Mapping[str, ColumnElement]
    serialize: Callable[[RowMapping], dict[str, Any]] = field(default=lambda row: dict(row))


class SQLListingBackend:
    """Runs list queries through an ``AsyncSession``.

    The count and the page are read with the same predicate so ``total``
    always describes the filtered set the page was cut from.
    """

    def __init__(self, session: AsyncSession, sources: Mapping[str, SQLSource] | None = None):
        self.session = session
        if sources is None:
            from betaintel.listing.sources import SQL_SOURCES

            sources = SQL_SOURCES
        self.sources = sources

    def build_statement(
        self,
        resource: ResourceSpec,
        predicate: Predicate,
    ) -> tuple[SQLSource, Select]:
        source = self.sources[resource.name]
        return source, source.statement().where(predicate_to_sql(predicate, source.filter_columns))

    def order_clauses(self, source: SQLSource, sort: ResolvedSort) -> list[ColumnElement]:
        clauses = []
        for name in (sort.field, sort.tiebreaker):
            if name is None:
                continue
            column = source.sort_columns[name]
            ordered = column.desc() if sort.descending else column.asc()
            clauses.append(ordered.nulls_last())
        return clauses

    async def fetch(
        self,
        resource: ResourceSpec,
        predicate: Predicate,
        sort: ResolvedSort,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        source, statement = self.build_statement(resource, predicate)

        count_query = select(func.count()).select_from(statement.subquery())
        total_result = await self.session.execute(count_query)
        total = total_result.scalar() or 0

        if offset >= total:
            return [], total

        page_query = statement.order_by(*self.order_clauses(source, sort)).offset(offset).limit(limit)
        result = await self.session.execute(page_query)
        return [source.serialize(row) for row in result.mappings().all()], total
