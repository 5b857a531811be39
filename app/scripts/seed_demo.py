from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.models.chat_message import ChatMessage
from app.models.insurance_policy import InsurancePolicy
from app.models.task import Task

DEMO_BOARD = "demo-board"
DEMO_ORG = "demo-org"
DEMO_ROOM = "demo-room"
BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
# uuid5 keeps patient ids stable between runs
PATIENT_NAMESPACE = uuid.UUID("6f1c2f3e-5d8a-4c7b-9e21-0a4b8c7d6e5f")


def demo_tasks() -> list[dict]:
    rows = []
    for index in range(1, 36):
        rows.append(
            {
                "board_code": DEMO_BOARD,
                "title": f"Demo task {index:02d}",
                "description": "Follow up with design" if index % 5 == 0 else None,
                "status": "open" if index <= 25 else "closed",
                "priority": ("low", "normal", "high")[index % 3],
                "story_points": index % 8 or None,
                "due_date": date(2026, 2, 1) + timedelta(days=index) if index % 4 else None,
                "created_at": BASE_TIME + timedelta(hours=index),
            }
        )
    return rows


def demo_policies() -> list[dict]:
    rows = []
    for index in range(1, 13):
        rows.append(
            {
                "organization_id": DEMO_ORG,
                "patient_id": uuid.uuid5(PATIENT_NAMESPACE, f"patient-{index % 4}"),
                "policy_number": f"POL-{1000 + index}",
                "payer_name": ("Acme Health", "Blue Shield", "Northwind Mutual")[index % 3],
                "plan_type": ("HMO", "PPO")[index % 2],
                "policy_status": "active" if index % 5 else "expired",
                "coverage_start_date": date(2025, 1, 1) + timedelta(days=index * 10),
                "coverage_end_date": None if index % 3 else date(2026, 12, 31),
                "created_at": BASE_TIME + timedelta(days=index),
            }
        )
    return rows


def demo_messages() -> list[dict]:
    senders = ("Alice", "Bob", "Carol")
    return [
        {
            "room_code": DEMO_ROOM,
            "sender_name": senders[index % 3],
            "message_type": "system" if index == 1 else "text",
            "body": f"Message number {index}",
            "is_pinned": index % 7 == 0,
            "created_at": BASE_TIME + timedelta(minutes=index),
        }
        for index in range(1, 21)
    ]


def _upsert(db: Session, model, items: list[dict], key_fields: tuple[str, ...]) -> tuple[int, int]:
    created = 0
    updated = 0
    for item in items:
        q = db.query(model)
        for key in key_fields:
            q = q.filter(getattr(model, key) == item[key])
        row = q.first()
        if row is None:
            db.add(model(**item))
            created += 1
            continue
        changed = False
        for key, value in item.items():
            if key in key_fields or key == "created_at":
                continue
            if getattr(row, key) != value:
                setattr(row, key, value)
                changed = True
        if changed:
            row.updated_at = datetime.now(timezone.utc)
            db.add(row)
            updated += 1
    return created, updated


def seed_demo(db: Session) -> dict[str, tuple[int, int]]:
    result = {
        "tasks": _upsert(db, Task, demo_tasks(), ("board_code", "title")),
        "insurance_policies": _upsert(db, InsurancePolicy, demo_policies(), ("organization_id", "policy_number")),
        "chat_messages": _upsert(db, ChatMessage, demo_messages(), ("room_code", "body")),
    }
    db.commit()
    return result


def main() -> None:
    db = SessionLocal()
    try:
        result = seed_demo(db)
    finally:
        db.close()
    for table, (created, updated) in result.items():
        print(f"{table} seed done: created={created}, updated={updated}")


if __name__ == "__main__":
    main()
