import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.core import database


class FakeQuery:
    """Just enough of the PostgREST request builder for the services under test."""

    def __init__(self, store, table):
        self.store = store
        self.table = table
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.ordering = None
        self.max_rows = None
        self.single = False

    # -- actions --
    def select(self, columns="*", count=None):
        self.action = "select"
        return self

    def insert(self, data):
        self.action, self.payload = "insert", data
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    # -- modifiers --
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if self.table in self.store.failing:
            raise APIError({"message": f"relation {self.table} unavailable", "code": "503"})
        self.store.calls.append((self.table, self.action))
        rows = self.store.tables.setdefault(self.table, [])

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.store.new_row(self.table, item) for item in items]
            rows.extend(created)
            return SimpleNamespace(data=copy.deepcopy(created))

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.action == "upsert":
            keys = self.on_conflict.split(",") if self.on_conflict else ["id"]
            item = self.payload
            for row in rows:
                if all(row.get(k) == item.get(k) for k in keys):
                    row.update(copy.deepcopy(item))
                    return SimpleNamespace(data=[copy.deepcopy(row)])
            created = self.store.new_row(self.table, item)
            rows.append(created)
            return SimpleNamespace(data=[copy.deepcopy(created)])

        found = [copy.deepcopy(r) for r in rows if self._matches(r)]
        if self.ordering:
            column, desc = self.ordering
            found.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self.max_rows is not None:
            found = found[: self.max_rows]
        if self.single:
            # supabase-py returns no response at all for an empty maybe_single()
            return SimpleNamespace(data=found[0]) if found else None
        return SimpleNamespace(data=found)


class FakeSupabase:
    def __init__(self, tables):
        self.tables = copy.deepcopy(tables)
        self.failing = set()
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def new_row(self, table, item):
        row = copy.deepcopy(item)
        row.setdefault("id", str(uuid.uuid4()))
        if table == "audit_logs":
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        return row

    def rows(self, table, **match):
        return [r for r in self.tables.get(table, []) if all(r.get(k) == v for k, v in match.items())]

    def row(self, table, row_id):
        matches = self.rows(table, id=row_id)
        return matches[0] if matches else None


SEED = {
    "profiles": [
        {"id": "p-admin", "email": "admin@school.edu", "full_name": "Ada Admin", "role": "admin", "is_active": True},
        {"id": "p-t1", "email": "rivera@school.edu", "full_name": "Ms. Rivera", "role": "teacher", "is_active": True},
        {"id": "p-t2", "email": "santos@school.edu", "full_name": "Mr. Santos", "role": "teacher", "is_active": True},
        {"id": "p-s1", "email": "alice@school.edu", "full_name": "Alice Cruz", "role": "student", "is_active": True},
        {"id": "p-s2", "email": "bob@school.edu", "full_name": "Bob Reyes", "role": "student", "is_active": True},
        {"id": "p-s3", "email": "gone@school.edu", "full_name": "Gone", "role": "student", "is_active": False},
    ],
    "teachers": [
        {"id": "t1", "user_id": "p-t1"},
        {"id": "t2", "user_id": "p-t2"},
    ],
    "students": [
        {"id": "s1", "user_id": "p-s1", "student_name": "Alice Cruz"},
        {"id": "s2", "user_id": "p-s2", "student_name": "Bob Reyes"},
    ],
    "group_classes": [
        {"id": "c1", "teacher_id": "t1", "class_name": "Algebra 1", "subject": "Math"},
        {"id": "c2", "teacher_id": "t2", "class_name": "Biology", "subject": "Science"},
    ],
    "class_students": [
        {"id": "e1", "class_id": "c1", "student_id": "s1"},
        {"id": "e2", "class_id": "c1", "student_id": "s2"},
        {"id": "e3", "class_id": "c2", "student_id": "s1"},
    ],
    "class_materials": [
        {"id": "m-quiz", "class_id": "c1", "title": "Quiz 1", "material_type": "quiz", "max_score": 100},
        {"id": "m-assign", "class_id": "c1", "title": "Essay", "material_type": "assignment", "max_score": None},
        {"id": "m-exam", "class_id": "c1", "title": "Midterm", "material_type": "exam", "max_score": 100},
        {"id": "m-bio", "class_id": "c2", "title": "Cells quiz", "material_type": "quiz", "max_score": 20},
    ],
    "student_submissions": [
        {"id": "sub-quiz", "material_id": "m-quiz", "student_id": "s1", "score": None, "max_score": 100,
         "is_graded": False, "status": "submitted", "submitted_at": "2026-09-01T08:00:00+00:00"},
        {"id": "sub-exam", "material_id": "m-exam", "student_id": "s1", "score": None, "max_score": 100,
         "is_graded": False, "status": "submitted", "submitted_at": "2026-09-02T08:00:00+00:00"},
        {"id": "sub-bio", "material_id": "m-bio", "student_id": "s1", "score": None, "max_score": 20,
         "is_graded": False, "status": "submitted", "submitted_at": "2026-09-03T08:00:00+00:00"},
    ],
    "grade_computation_settings": [],
    "audit_logs": [],
}

TEACHER = {"user_id": "p-t1", "email": "rivera@school.edu", "role": "teacher", "teacher_id": "t1"}
OTHER_TEACHER = {"user_id": "p-t2", "email": "santos@school.edu", "role": "teacher", "teacher_id": "t2"}


@pytest.fixture
def db():
    return FakeSupabase(SEED)


@pytest.fixture
def teacher():
    return dict(TEACHER)


@pytest.fixture
def other_teacher():
    return dict(OTHER_TEACHER)


@pytest.fixture
def client(db, monkeypatch):
    from app.core.config import settings
    from app.main import app

    monkeypatch.setattr(settings, "AUTH_MODE", "mock")
    monkeypatch.setattr(database, "_supabase_client", db)
    return TestClient(app)
