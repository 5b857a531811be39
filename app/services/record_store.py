from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Protocol, Sequence

from sqlalchemy import and_, asc, desc, or_
from sqlalchemy.orm import Query, Session

from app.services.paged_query import Condition, OrderBy, WhereClause


class RecordStore(Protocol):
    def find_many(self, where: WhereClause, order_by: Sequence[OrderBy], skip: int, take: int) -> list[Any]:
        ...

    def count(self, where: WhereClause) -> int:
        ...


def _column_expression(model, cond: Condition):
    col = getattr(model, cond.field, None)
    if col is None:
        raise ValueError(f'{model.__name__} has no column "{cond.field}"')
    if cond.op == "eq":
        return col == cond.value
    if cond.op == "contains":
        return col.icontains(cond.value, autoescape=True)
    if cond.op == "gte":
        return col >= cond.value
    if cond.op == "lt":
        return col < cond.value
    if cond.op == "lte":
        return col <= cond.value
    if cond.op == "in":
        return col.in_(list(cond.value))
    if cond.op == "is_null":
        return col.is_(None)
    raise ValueError(f'unsupported operator "{cond.op}"')


def _order_expression(model, o: OrderBy):
    # NULLs first ascending, last descending, whatever the backend's default.
    col = getattr(model, o.field)
    if o.direction == "asc":
        return asc(col).nulls_first()
    return desc(col).nulls_last()


class SqlAlchemyRecordStore:
    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def _filtered(self, where: WhereClause) -> Query:
        q = self.db.query(self.model)
        if where.conditions:
            q = q.filter(and_(*(_column_expression(self.model, c) for c in where.conditions)))
        if where.any_of:
            q = q.filter(or_(*(_column_expression(self.model, c) for c in where.any_of)))
        return q

    def find_many(self, where: WhereClause, order_by: Sequence[OrderBy], skip: int, take: int) -> list[Any]:
        q = self._filtered(where)
        for o in order_by:
            q = q.order_by(_order_expression(self.model, o))
        return q.offset(skip).limit(take).all()

    def count(self, where: WhereClause) -> int:
        return self._filtered(where).count()


def _comparable(value):
    # Naive timestamps are stored UTC.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _matches(row: Mapping[str, Any], cond: Condition) -> bool:
    value = _comparable(row.get(cond.field))
    if cond.op == "is_null":
        return value is None
    if value is None:
        return False
    if cond.op == "eq":
        return value == cond.value
    if cond.op == "contains":
        return str(cond.value).lower() in str(value).lower()
    if cond.op == "gte":
        return value >= cond.value
    if cond.op == "lt":
        return value < cond.value
    if cond.op == "lte":
        return value <= cond.value
    if cond.op == "in":
        return value in cond.value
    raise ValueError(f'unsupported operator "{cond.op}"')


def _sort_key(value):
    if value is None:
        return (False, 0)
    return (True, _comparable(value))


class InMemoryRecordStore:
    """Record store over a list of mappings.

    Applies the same where semantics as the SQL store. Rows are copied on
    construction and never modified; naive timestamps are read as UTC and
    NULLs sort first in ascending order.
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]]):
        self._rows = [dict(row) for row in rows]

    def _filtered(self, where: WhereClause) -> list[dict[str, Any]]:
        out = []
        for row in self._rows:
            if not all(_matches(row, c) for c in where.conditions):
                continue
            if where.any_of and not any(_matches(row, c) for c in where.any_of):
                continue
            out.append(row)
        return out

    def find_many(self, where: WhereClause, order_by: Sequence[OrderBy], skip: int, take: int) -> list[Any]:
        rows = self._filtered(where)
        # stable sorts applied from the least to the most significant key
        for o in reversed(order_by):
            rows.sort(key=lambda r, f=o.field: _sort_key(r.get(f)), reverse=o.direction == "desc")
        return [dict(row) for row in rows[skip : skip + take]]

    def count(self, where: WhereClause) -> int:
        return len(self._filtered(where))
