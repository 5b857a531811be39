from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class SortDirective(BaseModel):
    # Loosely typed on purpose: unknown keys and directions fall back to defaults.
    field: Optional[Any] = None
    direction: Optional[Any] = None


class PageRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page: Optional[Any] = None
    limit: Optional[Any] = None
    search: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    sort: Optional[SortDirective] = None


class Pagination(BaseModel):
    current: int
    limit: int
    records: int
    pages: int


class PageEnvelope(BaseModel):
    pagination: Pagination
    data: List[Dict[str, Any]]


class FilterFieldMeta(BaseModel):
    name: str
    kind: str
    match: str


class CollectionMeta(BaseModel):
    name: str
    label: str
    filter_fields: List[FilterFieldMeta]
    sort_fields: List[str]
    default_sort: str
    search_fields: List[str]


class CollectionList(BaseModel):
    rows: List[CollectionMeta]
    total: int
