from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.deps import actor_role
from app.schemas.paging import PageRequest
from app.services.collections import COLLECTIONS, Collection, get_collection
from app.services.paged_query import Condition, query_page
from app.services.record_store import SqlAlchemyRecordStore


def _require_read_access(actor: dict, collection: Collection) -> None:
    if actor_role(actor) not in collection.read_roles:
        raise HTTPException(status_code=403, detail="Insufficient permissions")


def _tenant_scope(actor: dict, collection: Collection) -> list[Condition]:
    tenant_field = collection.spec.tenant_field
    if not tenant_field:
        return []
    org = str(actor.get("org") or "").strip()
    if not org:
        raise HTTPException(status_code=403, detail="Actor has no organization")
    return [Condition(tenant_field, "eq", org)]


def query_collection_service(name: str, request: PageRequest, db: Session, actor: dict) -> dict[str, Any]:
    collection = get_collection(name)
    _require_read_access(actor, collection)
    scope = _tenant_scope(actor, collection)
    store = SqlAlchemyRecordStore(db, collection.model)
    return query_page(store, collection.spec, request, scope=scope, serialize=collection.serialize)


def list_collections_service(actor: dict) -> dict[str, Any]:
    role = actor_role(actor)
    rows = []
    for collection in COLLECTIONS.values():
        if role not in collection.read_roles:
            continue
        spec = collection.spec
        rows.append(
            {
                "name": spec.name,
                "label": spec.label or spec.name,
                "filter_fields": [
                    {"name": f.name, "kind": f.kind, "match": f.match} for f in spec.filter_fields
                ],
                "sort_fields": list(spec.sort_fields),
                "default_sort": spec.default_sort,
                "search_fields": list(spec.search_fields),
            }
        )
    return {"rows": rows, "total": len(rows)}
