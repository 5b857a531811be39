from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy import inspect as sa_inspect


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        # date columns stay calendar dates: YYYY-MM-DD
        return value.isoformat()[:10]
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Any) -> dict[str, Any]:
    if isinstance(row, Mapping):
        return {str(key): serialize_value(val) for key, val in row.items()}
    mapper = sa_inspect(type(row))
    return {column.key: serialize_value(getattr(row, column.key)) for column in mapper.columns}


def make_serializer(hidden_fields: Iterable[str] = ()) -> Callable[[Any], dict[str, Any]]:
    hidden = frozenset(hidden_fields)

    def _serialize(row: Any) -> dict[str, Any]:
        payload = row_to_dict(row)
        for key in hidden:
            payload.pop(key, None)
        return payload

    return _serialize
