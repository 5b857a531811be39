from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence

from fastapi import HTTPException

from app.core.config import settings
from app.schemas.paging import PageRequest, SortDirective

if TYPE_CHECKING:
    from app.services.record_store import RecordStore

_LOG = logging.getLogger("app.paged_query")

FIELD_KINDS = {"text", "number", "bool", "date", "datetime", "uuid"}
MATCH_MODES = {"exact", "contains"}
RANGE_KINDS = {"number", "date", "datetime"}
RANGE_BOUNDS = ("gte", "lte")
DIRECTIONS = {"asc", "desc"}
NUMBER_MIN = -(2**63)
NUMBER_MAX = 2**63 - 1

_ABSENT = object()


@dataclass(frozen=True)
class FilterField:
    """One allow-listed filter column of a collection.

    ``null_matches_missing`` decides what an explicit ``null`` means for the
    field: ``False`` drops the constraint, ``True`` turns it into IS NULL.
    """

    name: str
    kind: str = "text"
    match: str = "exact"
    null_matches_missing: bool = False

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"unknown field kind {self.kind!r} for {self.name!r}")
        if self.match not in MATCH_MODES:
            raise ValueError(f"unknown match mode {self.match!r} for {self.name!r}")
        if self.match == "contains" and self.kind != "text":
            raise ValueError(f"substring matching needs a text field, got {self.kind!r} for {self.name!r}")


@dataclass(frozen=True)
class Condition:
    field: str
    op: str  # eq | contains | gte | lt | lte | in | is_null
    value: Any = None


@dataclass(frozen=True)
class WhereClause:
    # conditions are AND'ed; any_of is a single OR group AND'ed with them
    conditions: tuple[Condition, ...] = ()
    any_of: tuple[Condition, ...] = ()


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str = "asc"


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    filter_fields: tuple[FilterField, ...]
    sort_fields: Mapping[str, str]
    default_sort: str = "created_at"
    default_direction: str = "desc"
    tie_breaker: str = "id"
    search_fields: tuple[str, ...] = ()
    soft_delete_field: str | None = "deleted_at"
    tenant_field: str | None = None
    label: str = ""

    def __post_init__(self):
        if self.default_sort not in self.sort_fields:
            raise ValueError(f"default sort {self.default_sort!r} is not sortable in {self.name!r}")
        if self.default_direction not in DIRECTIONS:
            raise ValueError(f"bad default direction {self.default_direction!r} in {self.name!r}")

    def filter_field(self, name: str) -> FilterField | None:
        for item in self.filter_fields:
            if item.name == name:
                return item
        return None


def _bad_filter_value(field_name: str, kind: str) -> HTTPException:
    return HTTPException(status_code=400, detail=f'Invalid filter value for field "{field_name}" ({kind})')


def _coerce_bool(field_name: str, value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    raise _bad_filter_value(field_name, "boolean")


def _checked_number(field_name: str, value):
    # Values must fit a signed 64-bit column.
    if isinstance(value, float) and not math.isfinite(value):
        raise _bad_filter_value(field_name, "number")
    if isinstance(value, Decimal) and not value.is_finite():
        raise _bad_filter_value(field_name, "number")
    if not NUMBER_MIN <= value <= NUMBER_MAX:
        raise _bad_filter_value(field_name, "number")
    return value


def _coerce_number(field_name: str, value):
    if isinstance(value, bool):
        raise _bad_filter_value(field_name, "number")
    if isinstance(value, (int, float, Decimal)):
        return _checked_number(field_name, value)
    text = str(value or "").strip()
    if not text:
        raise _bad_filter_value(field_name, "number")
    normalized = text.replace(",", ".")
    try:
        parsed = int(normalized)
    except ValueError:
        try:
            parsed = Decimal(normalized)
        except InvalidOperation:
            raise _bad_filter_value(field_name, "number")
    return _checked_number(field_name, parsed)


def _coerce_date(field_name: str, value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise _bad_filter_value(field_name, "date")
    try:
        # Accept either YYYY-MM-DD or full ISO datetime and take its date part.
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_filter_value(field_name, "date")


def _coerce_datetime(field_name: str, value):
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    else:
        text = str(value or "").strip()
        if not text:
            raise _bad_filter_value(field_name, "datetime")
        try:
            if _is_date_only_literal(text):
                # Date-only filter value for timestamp columns -> start of the day.
                parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_filter_value(field_name, "datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_uuid(field_name: str, value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value or "").strip())
    except ValueError:
        raise _bad_filter_value(field_name, "uuid")


def _coerce_text(field_name: str, value):
    if isinstance(value, (dict, list, tuple)):
        raise _bad_filter_value(field_name, "text")
    return str(value)


_COERCERS: dict[str, Callable[[str, Any], Any]] = {
    "text": _coerce_text,
    "number": _coerce_number,
    "bool": _coerce_bool,
    "date": _coerce_date,
    "datetime": _coerce_datetime,
    "uuid": _coerce_uuid,
}


def coerce_filter_value(field: FilterField, value):
    if value is None:
        raise _bad_filter_value(field.name, field.kind)
    return _COERCERS[field.kind](field.name, value)


def _is_date_only_literal(raw_value) -> bool:
    if isinstance(raw_value, date) and not isinstance(raw_value, datetime):
        return True
    if not isinstance(raw_value, str):
        return False
    text = raw_value.strip()
    if not text or "T" in text or " " in text:
        return False
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def _is_explicit_null(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _range_conditions(field: FilterField, bounds: Mapping[str, Any]) -> list[Condition]:
    if field.kind not in RANGE_KINDS:
        raise HTTPException(status_code=400, detail=f'Range filter is not supported for field "{field.name}"')
    unknown = sorted(str(key) for key in bounds if key not in RANGE_BOUNDS)
    if unknown:
        raise HTTPException(status_code=400, detail=f'Unsupported range bound "{unknown[0]}" for field "{field.name}"')
    conditions: list[Condition] = []
    for bound in RANGE_BOUNDS:
        raw = bounds.get(bound)
        if _is_explicit_null(raw):
            continue
        value = coerce_filter_value(field, raw)
        if bound == "lte" and field.kind == "datetime" and _is_date_only_literal(raw):
            # "up to 2026-02-26" on a timestamp covers that whole day.
            conditions.append(Condition(field.name, "lt", value + timedelta(days=1)))
        else:
            conditions.append(Condition(field.name, bound, value))
    return conditions


def _field_conditions(field: FilterField, raw) -> list[Condition]:
    if _is_explicit_null(raw):
        if field.null_matches_missing:
            return [Condition(field.name, "is_null")]
        return []
    if isinstance(raw, Mapping):
        return _range_conditions(field, raw)
    if isinstance(raw, (list, tuple)):
        if field.match != "exact":
            raise HTTPException(status_code=400, detail=f'Set filter is not supported for field "{field.name}"')
        return [Condition(field.name, "in", tuple(coerce_filter_value(field, item) for item in raw))]
    if field.match == "contains":
        return [Condition(field.name, "contains", str(raw).strip())]
    value = coerce_filter_value(field, raw)
    if field.kind == "datetime" and _is_date_only_literal(raw):
        return [
            Condition(field.name, "gte", value),
            Condition(field.name, "lt", value + timedelta(days=1)),
        ]
    return [Condition(field.name, "eq", value)]


def build_where(
    spec: CollectionSpec,
    filters: Mapping[str, Any] | None,
    search: str | None = None,
    *,
    scope: Sequence[Condition] = (),
) -> WhereClause:
    filters = filters or {}
    allowed = {item.name for item in spec.filter_fields}
    unknown = sorted(str(key) for key in filters if key not in allowed)
    if unknown:
        raise HTTPException(status_code=400, detail=f'Invalid filter field "{unknown[0]}"')

    conditions: list[Condition] = list(scope)
    if spec.soft_delete_field:
        conditions.append(Condition(spec.soft_delete_field, "is_null"))
    for field in spec.filter_fields:
        raw = filters.get(field.name, _ABSENT)
        if raw is _ABSENT:
            continue
        conditions.extend(_field_conditions(field, raw))

    any_of: tuple[Condition, ...] = ()
    term = str(search or "").strip()
    if term:
        if spec.search_fields:
            any_of = tuple(Condition(name, "contains", term) for name in spec.search_fields)
        else:
            _LOG.debug("search ignored collection=%s: no search fields", spec.name)
    return WhereClause(conditions=tuple(conditions), any_of=any_of)


def _positive_int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        parsed = int(value)
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed >= 1 else None


def normalize_page_window(
    page,
    limit,
    *,
    default_limit: int | None = None,
    max_limit: int | None = None,
) -> PageWindow:
    default_limit = default_limit or settings.PAGE_DEFAULT_LIMIT
    max_limit = max_limit or settings.PAGE_MAX_LIMIT
    resolved_page = _positive_int(page)
    if resolved_page is None:
        if page is not None:
            _LOG.debug("page normalized raw=%r -> 1", page)
        resolved_page = 1
    resolved_limit = _positive_int(limit)
    if resolved_limit is None:
        if limit is not None:
            _LOG.debug("limit normalized raw=%r -> %s", limit, default_limit)
        resolved_limit = default_limit
    return PageWindow(page=resolved_page, limit=min(resolved_limit, max_limit))


def resolve_sort(spec: CollectionSpec, directive: SortDirective | None) -> list[OrderBy]:
    raw_field = directive.field if directive is not None else None
    raw_direction = directive.direction if directive is not None else None

    key = raw_field.strip() if isinstance(raw_field, str) else None
    column = spec.sort_fields.get(key) if key else None
    if column is None:
        if raw_field is not None:
            _LOG.debug("sort field fallback collection=%s raw=%r -> %s", spec.name, raw_field, spec.default_sort)
        column = spec.sort_fields[spec.default_sort]

    direction = raw_direction.strip().lower() if isinstance(raw_direction, str) else ""
    if direction not in DIRECTIONS:
        direction = spec.default_direction

    order_by = [OrderBy(column, direction)]
    if column != spec.tie_breaker:
        order_by.append(OrderBy(spec.tie_breaker, "asc"))
    return order_by


def page_count(records: int, limit: int) -> int:
    if records <= 0:
        return 0
    return math.ceil(records / max(limit, 1))


def query_page(
    store: RecordStore,
    spec: CollectionSpec,
    request: PageRequest | Mapping[str, Any],
    *,
    scope: Sequence[Condition] = (),
    serialize: Callable[[Any], dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Run one filtered, sorted and paginated read against ``store``.

    ``records`` and ``data`` come from the same where clause, so the counts
    always agree with the rows. Validation problems raise ``HTTPException``
    with status 400; store errors propagate unchanged.
    """
    if not isinstance(request, PageRequest):
        request = PageRequest.model_validate(request)

    window = normalize_page_window(request.page, request.limit)
    where = build_where(spec, request.filters, request.search, scope=scope)
    order_by = resolve_sort(spec, request.sort)

    total = store.count(where)
    rows = store.find_many(where, order_by, window.skip, window.limit) if window.skip < total else []
    _LOG.debug(
        "page query collection=%s page=%s limit=%s conditions=%s search=%s order=%s records=%s",
        spec.name,
        window.page,
        window.limit,
        len(where.conditions),
        bool(where.any_of),
        ",".join(f"{o.field}:{o.direction}" for o in order_by),
        total,
    )
    return {
        "pagination": {
            "current": window.page,
            "limit": window.limit,
            "records": total,
            "pages": page_count(total, window.limit),
        },
        "data": [serialize(row) for row in rows] if serialize else list(rows),
    }
