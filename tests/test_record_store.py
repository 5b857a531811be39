import os
import unittest
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.models.task import Task
from app.schemas.paging import PageRequest
from app.services.collections import TASKS
from app.services.paged_query import Condition, OrderBy, WhereClause, query_page
from app.services.record_store import InMemoryRecordStore, SqlAlchemyRecordStore, _order_expression

BASE = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def _task_rows():
    rows = []
    for index in range(1, 36):
        rows.append(
            {
                "id": uuid.uuid4(),
                "board_code": "core",
                "title": f"Task {index:02d}",
                "description": "Check 100% of the logs" if index % 9 == 0 else None,
                "status": "open" if index <= 25 else "closed",
                "priority": ("low", "normal", "high")[index % 3],
                "assignee_name": "Dana Scully" if index % 2 else None,
                "story_points": index % 5,
                "due_date": date(2026, 4, index % 28 + 1) if index % 4 else None,
                "created_at": BASE + timedelta(minutes=index % 6),
                "updated_at": BASE,
                "deleted_at": None,
            }
        )
    rows.append(dict(rows[0], id=uuid.uuid4(), title="Removed task", deleted_at=BASE))
    return rows


class SqlAlchemyRecordStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Task.__table__.create(bind=cls.engine)
        cls.rows = _task_rows()
        with cls.SessionLocal() as db:
            db.add_all([Task(**row) for row in cls.rows])
            db.commit()

    @classmethod
    def tearDownClass(cls):
        Task.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        self.db = self.SessionLocal()
        self.store = SqlAlchemyRecordStore(self.db, Task)

    def tearDown(self):
        self.db.close()

    def _query(self, store=None, **body):
        return query_page(store or self.store, TASKS.spec, PageRequest(**body), serialize=TASKS.serialize)

    def test_open_closed_scenario(self):
        first = self._query(filters={"status": "open"}, page=1, limit=10)
        self.assertEqual(first["pagination"], {"current": 1, "limit": 10, "records": 25, "pages": 3})
        self.assertEqual(len(first["data"]), 10)
        self.assertEqual(len(self._query(filters={"status": "open"}, page=3, limit=10)["data"]), 5)
        closed = self._query(filters={"status": "closed"}, page=1, limit=10)
        self.assertEqual((closed["pagination"]["records"], closed["pagination"]["pages"]), (10, 1))
        self.assertEqual(len(closed["data"]), 10)

    def test_soft_deleted_rows_never_returned(self):
        result = self._query(filters={"title": "removed"})
        self.assertEqual(result["pagination"]["records"], 0)

    def test_same_order_as_in_memory_store(self):
        memory = InMemoryRecordStore(self.rows)
        for body in (
            {"limit": 100},
            {"limit": 100, "sort": {"field": "story_points", "direction": "asc"}},
            {"limit": 100, "sort": {"field": "due_date", "direction": "desc"}},
            {"limit": 7, "page": 2, "filters": {"priority": ["low", "high"]}, "sort": {"field": "priority"}},
        ):
            with self.subTest(body=body):
                sql_titles = [row["title"] for row in self._query(**body)["data"]]
                memory_titles = [row["title"] for row in self._query(store=memory, **body)["data"]]
                self.assertEqual(sql_titles, memory_titles)

    def test_sort_ascending_by_title(self):
        titles = [row["title"] for row in self._query(sort={"field": "title", "direction": "asc"}, limit=100)["data"]]
        self.assertEqual(titles, sorted(titles))

    def test_search_escapes_like_wildcards(self):
        result = self._query(search="100%")
        self.assertEqual(sorted(row["title"] for row in result["data"]), ["Task 09", "Task 18", "Task 27"])
        self.assertEqual(self._query(search="1_0")["pagination"]["records"], 0)

    def test_contains_filter_is_case_insensitive(self):
        result = self._query(filters={"assignee_name": "SCULLY"}, limit=100)
        self.assertEqual(result["pagination"]["records"], 18)

    def test_due_date_range_and_null(self):
        ranged = self._query(filters={"due_date": {"gte": "2026-04-10"}}, limit=100)
        self.assertTrue(ranged["data"])
        self.assertTrue(all(row["due_date"] >= "2026-04-10" for row in ranged["data"]))
        missing = self._query(filters={"due_date": None}, limit=100)
        self.assertEqual(missing["pagination"]["records"], 8)

    def test_created_at_day_filter(self):
        self.assertEqual(self._query(filters={"created_at": "2026-03-01"})["pagination"]["records"], 35)
        self.assertEqual(self._query(filters={"created_at": "2026-03-02"})["pagination"]["records"], 0)

    def test_dto_shape(self):
        row = self._query(filters={"title": "Task 05"})["data"][0]
        self.assertNotIn("deleted_at", row)
        self.assertIsInstance(row["id"], str)
        self.assertEqual(row["due_date"], "2026-04-06")
        self.assertTrue(row["created_at"].startswith("2026-03-01T08:05:00"))

    def test_count_and_find_share_where(self):
        where = WhereClause(conditions=(Condition("status", "eq", "closed"),))
        rows = self.store.find_many(where, [OrderBy("title", "asc")], 0, 100)
        self.assertEqual(len(rows), self.store.count(where))

    def test_unknown_column_in_where_is_a_programming_error(self):
        with self.assertRaises(ValueError):
            self.store.count(WhereClause(conditions=(Condition("nope", "eq", 1),)))

    def test_nulls_follow_in_memory_order_on_nullable_sort_key(self):
        memory = InMemoryRecordStore(self.rows)
        for direction in ("asc", "desc"):
            with self.subTest(direction=direction):
                body = {"limit": 100, "sort": {"field": "due_date", "direction": direction}}
                sql_rows = self._query(**body)["data"]
                self.assertEqual([row["title"] for row in sql_rows], [row["title"] for row in self._query(store=memory, **body)["data"]])
                nulls = [row["due_date"] is None for row in sql_rows]
                self.assertEqual(nulls, sorted(nulls, reverse=direction == "asc"))


class NullOrderingCompileTests(unittest.TestCase):
    def test_postgres_order_pins_null_placement(self):
        asc_sql = str(_order_expression(Task, OrderBy("due_date", "asc")).compile(dialect=postgresql.dialect()))
        desc_sql = str(_order_expression(Task, OrderBy("due_date", "desc")).compile(dialect=postgresql.dialect()))
        self.assertIn("ASC NULLS FIRST", asc_sql)
        self.assertIn("DESC NULLS LAST", desc_sql)


class InMemoryNaiveDatetimeTests(unittest.TestCase):
    def setUp(self):
        rows = _task_rows()
        for row in rows:
            row["created_at"] = row["created_at"].replace(tzinfo=None)
        rows.append(dict(rows[1], id=uuid.uuid4(), title="Late task", created_at=datetime(2026, 3, 2, 9, 30)))
        self.store = InMemoryRecordStore(rows)

    def _query(self, **body):
        return query_page(self.store, TASKS.spec, PageRequest(**body), serialize=TASKS.serialize)

    def test_day_filter_reads_naive_values_as_utc(self):
        self.assertEqual(self._query(filters={"created_at": "2026-03-01"})["pagination"]["records"], 35)
        late = self._query(filters={"created_at": "2026-03-02"})
        self.assertEqual([row["title"] for row in late["data"]], ["Late task"])

    def test_range_over_naive_values(self):
        result = self._query(filters={"created_at": {"gte": "2026-03-01T08:05:00Z", "lte": "2026-03-01"}}, limit=100)
        self.assertEqual(result["pagination"]["records"], 6)

    def test_default_sort_over_naive_values(self):
        rows = self._query(limit=2)["data"]
        self.assertEqual(rows[0]["title"], "Late task")


class SqlAlchemyStoreErrorTests(unittest.TestCase):
    def test_storage_errors_propagate(self):
        engine = create_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
        db = sessionmaker(bind=engine)()
        try:
            with self.assertRaises(SQLAlchemyError):
                query_page(SqlAlchemyRecordStore(db, Task), TASKS.spec, PageRequest())
        finally:
            db.close()
            engine.dispose()


if __name__ == "__main__":
    unittest.main()
