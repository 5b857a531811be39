import os
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.models.chat_message import ChatMessage
from app.models.insurance_policy import InsurancePolicy
from app.models.task import Task
from app.scripts.seed_demo import DEMO_ORG, seed_demo
from app.services.collections import INSURANCE_POLICIES, TASKS
from app.services.paged_query import Condition, query_page
from app.services.record_store import SqlAlchemyRecordStore


class SeedDemoTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        for model in (Task, InsurancePolicy, ChatMessage):
            model.__table__.create(bind=self.engine)
        self.db = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_seed_is_idempotent(self):
        first = seed_demo(self.db)
        self.assertEqual(first["tasks"], (35, 0))
        self.assertEqual(first["insurance_policies"], (12, 0))
        self.assertEqual(first["chat_messages"], (20, 0))

        second = seed_demo(self.db)
        self.assertEqual(second, {"tasks": (0, 0), "insurance_policies": (0, 0), "chat_messages": (0, 0)})
        self.assertEqual(self.db.query(Task).count(), 35)

    def test_seeded_tasks_page_as_expected(self):
        seed_demo(self.db)
        store = SqlAlchemyRecordStore(self.db, Task)
        result = query_page(store, TASKS.spec, {"filters": {"status": "open"}, "page": 3, "limit": 10})
        self.assertEqual(result["pagination"], {"current": 3, "limit": 10, "records": 25, "pages": 3})
        self.assertEqual(len(result["data"]), 5)

    def test_seeded_policies_are_tenant_scoped(self):
        seed_demo(self.db)
        store = SqlAlchemyRecordStore(self.db, InsurancePolicy)
        scoped = query_page(
            store,
            INSURANCE_POLICIES.spec,
            {"filters": {"policy_status": "expired"}},
            scope=[Condition("organization_id", "eq", DEMO_ORG)],
        )
        self.assertEqual(scoped["pagination"]["records"], 2)
        other = query_page(store, INSURANCE_POLICIES.spec, {}, scope=[Condition("organization_id", "eq", "other")])
        self.assertEqual(other["pagination"]["records"], 0)
