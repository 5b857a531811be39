from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from fastapi import HTTPException

from app.models.chat_message import ChatMessage
from app.models.insurance_policy import InsurancePolicy
from app.models.task import Task
from app.services.paged_query import CollectionSpec, FilterField
from app.services.record_dto import make_serializer


@dataclass(frozen=True)
class Collection:
    spec: CollectionSpec
    model: Any
    read_roles: frozenset[str]
    serialize: Callable[[Any], dict[str, Any]]

    @property
    def name(self) -> str:
        return self.spec.name


TASKS = Collection(
    spec=CollectionSpec(
        name="tasks",
        label="Tasks",
        filter_fields=(
            FilterField("board_code"),
            FilterField("status"),
            FilterField("priority"),
            FilterField("assignee_name", match="contains"),
            FilterField("title", match="contains"),
            FilterField("story_points", kind="number"),
            FilterField("due_date", kind="date", null_matches_missing=True),
            FilterField("created_at", kind="datetime"),
        ),
        sort_fields={
            "created_at": "created_at",
            "updated_at": "updated_at",
            "title": "title",
            "status": "status",
            "priority": "priority",
            "due_date": "due_date",
            "story_points": "story_points",
        },
        search_fields=("title", "description"),
    ),
    model=Task,
    read_roles=frozenset({"ADMIN", "MANAGER", "MEMBER"}),
    serialize=make_serializer(hidden_fields=("deleted_at",)),
)

INSURANCE_POLICIES = Collection(
    spec=CollectionSpec(
        name="insurance_policies",
        label="Insurance policies",
        filter_fields=(
            FilterField("patient_id", kind="uuid"),
            FilterField("policy_status"),
            FilterField("plan_type"),
            FilterField("policy_number", match="contains"),
            FilterField("payer_name", match="contains"),
            FilterField("coverage_start_date", kind="date"),
            FilterField("coverage_end_date", kind="date", null_matches_missing=True),
        ),
        sort_fields={
            "created_at": "created_at",
            "policy_number": "policy_number",
            "plan_type": "plan_type",
            "payer_name": "payer_name",
            "policy_status": "policy_status",
            "coverage_start_date": "coverage_start_date",
            "coverage_end_date": "coverage_end_date",
        },
        search_fields=("policy_number", "payer_name"),
        tenant_field="organization_id",
    ),
    model=InsurancePolicy,
    read_roles=frozenset({"ADMIN", "ORG_ADMIN"}),
    serialize=make_serializer(hidden_fields=("deleted_at",)),
)

CHAT_MESSAGES = Collection(
    spec=CollectionSpec(
        name="chat_messages",
        label="Chat messages",
        filter_fields=(
            FilterField("room_code"),
            FilterField("sender_name", match="contains"),
            FilterField("message_type"),
            FilterField("is_pinned", kind="bool"),
            FilterField("created_at", kind="datetime"),
        ),
        sort_fields={
            "created_at": "created_at",
            "sender_name": "sender_name",
            "message_type": "message_type",
        },
        search_fields=("body", "sender_name"),
    ),
    model=ChatMessage,
    read_roles=frozenset({"ADMIN", "MEMBER"}),
    serialize=make_serializer(hidden_fields=("deleted_at",)),
)

COLLECTIONS: dict[str, Collection] = {
    item.name: item for item in (TASKS, INSURANCE_POLICIES, CHAT_MESSAGES)
}


def get_collection(name: str) -> Collection:
    normalized = str(name or "").strip().lower()
    collection = COLLECTIONS.get(normalized)
    if collection is None:
        raise HTTPException(status_code=404, detail=f'Collection "{name}" not found')
    return collection
