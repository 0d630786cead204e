"""Shared fixtures: an in-memory stand-in for the PostgREST store."""

from __future__ import annotations

import itertools
import re
from typing import Any

import pytest

from interview_desk import database as db
from interview_desk.config import Config
from interview_desk.store import Query


def _matches(value: Any, expr: str) -> bool:
    op, _, arg = expr.partition(".")
    if op == "eq":
        return str(value) == arg
    if op == "in":
        wanted = [v.strip('"') for v in arg[1:-1].split('","')]
        return str(value) in wanted
    if op == "gte":
        return value is not None and str(value) >= arg
    if op == "lte":
        return value is not None and str(value) <= arg
    if expr == "not.is.null":
        return value is not None
    raise AssertionError(f"unsupported filter {expr!r}")


_OR_ILIKE = re.compile(r'(\w+)\.ilike\."\*((?:[^"\\]|\\.)*)\*"')


def _matches_or(row: dict, expr: str) -> bool:
    for column, pattern in _OR_ILIKE.findall(expr):
        term = re.sub(r"\\(.)", r"\1", pattern).lower()
        if term in str(row.get(column) or "").lower():
            return True
    return False


class FakeStore:
    """Implements the slice of SupabaseStore that the table helpers use."""

    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables: dict[str, list[dict]] = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls: list[tuple] = []
        self.fail: dict[str, Exception] = {}
        self.auth_responses: dict[str, Any] = {}
        self.access_token: str | None = None
        self._ids = itertools.count(1000)

    def _check(self, table: str) -> None:
        if table in self.fail:
            raise self.fail[table]

    def selects(self, table: str) -> int:
        return sum(1 for c in self.calls if c[0] == "select" and c[1] == table)

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "update", "delete")]

    async def select(self, query: Query) -> list[dict]:
        self.calls.append(("select", query.table, list(query.params)))
        self._check(query.table)
        rows = list(self.tables.get(query.table, []))
        order, limit = [], None
        for key, expr in query.params:
            if key == "select":
                continue
            if key == "order":
                order.append(expr)
            elif key == "limit":
                limit = int(expr)
            elif key == "or":
                rows = [r for r in rows if _matches_or(r, expr)]
            else:
                rows = [r for r in rows if _matches(r.get(key), expr)]
        for expr in reversed(order):
            column, direction = expr.rsplit(".", 1)
            rows.sort(key=lambda r: str(r.get(column) or ""), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        self.calls.append(("insert", table, rows))
        self._check(table)
        created = []
        for row in rows if isinstance(rows, list) else [rows]:
            row = dict(row)
            row.setdefault("id", next(self._ids))
            self.tables.setdefault(table, []).append(row)
            created.append(dict(row))
        return created

    async def update(self, table: str, key: str, value: Any, values: dict) -> list[dict]:
        self.calls.append(("update", table, key, value, values))
        self._check(table)
        changed = []
        for row in self.tables.get(table, []):
            if str(row.get(key)) == str(value):
                row.update(values)
                changed.append(dict(row))
        return changed

    async def delete(self, table: str, key: str, value: Any) -> None:
        self.calls.append(("delete", table, key, value))
        self._check(table)
        self.tables[table] = [r for r in self.tables.get(table, []) if str(r.get(key)) != str(value)]

    async def auth(self, path: str, payload: dict | None = None, params: dict | None = None) -> dict:
        self.calls.append(("auth", path, payload, params))
        self._check(f"auth:{path}")
        return self.auth_responses.get(path, {})


@pytest.fixture
def cfg() -> Config:
    return Config(supabase_url="https://demo.supabase.co", supabase_anon_key="anon-key")


@pytest.fixture
def candidate_rows() -> list[dict]:
    return [
        {
            "candidate_id": "c-1", "first_name": "Alice", "last_name": "Santos", "email": "alice@example.com",
            "status": "CV Processed", "position_code": "DEV01", "vote": 6,
            "created_at": "2025-01-05T09:00:00+00:00",
        },
        {
            "candidate_id": "c-2", "first_name": "Ben", "last_name": "Okafor", "email": "ben@example.com",
            "status": "Interviewed", "position_code": "OPS02", "vote": None,
            "created_at": "2025-01-03T09:00:00+00:00",
        },
        {
            "candidate_id": "c-3", "first_name": "Carla", "last_name": "Nguyen", "email": "carla@example.org",
            "status": "For Interview", "position_code": "DEV01", "vote": 8.5,
            "created_at": "2024-12-20T09:00:00+00:00",
        },
    ]


@pytest.fixture
def store(candidate_rows) -> FakeStore:
    return FakeStore({
        db.CANDIDATES: candidate_rows,
        db.POSITION_CODES: [
            {"position_code": "DEV01", "position_name": "Backend Developer"},
            {"position_code": "OPS02", "position_name": "Operations Lead"},
        ],
        db.APPOINTMENTS: [],
        db.BLOCKED_DATES: [],
        db.EVALUATIONS: [],
        db.EXECUTION_LOG: [],
    })
