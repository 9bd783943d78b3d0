"""Shared fixtures: an in-memory stand-in for the hosted REST service."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import httpx
import pytest

from order_archive.adapters.local import LocalBackend
from order_archive.adapters.rest import RestBackend

SKIPPED_PARAMS = {"select", "order", "on_conflict"}
QUOTED = re.compile(r'"((?:[^"\\]|\\.)*)"')


class FakeRestService:
    """Answer PostgREST style requests from plain Python lists.

    Only the filters the backend uses are understood (``eq``, ``neq``,
    ``is.null`` and ``in``). Deleting a comment that still has replies is
    rejected with 409, like a foreign key would be.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            "members": [],
            "articles": [],
            "comments": [],
        }
        self.requests: list[httpx.Request] = []
        self.failing: set[tuple[str, str]] = set()
        self.clock = 0

    # ------------------------------------------------------------------
    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def add_row(self, table: str, **row: Any) -> dict[str, Any]:
        self.clock += 1
        row.setdefault("created_at", self.clock)
        self.tables[table].append(row)
        return row

    # ------------------------------------------------------------------
    @staticmethod
    def _matches(row: dict[str, Any], params: dict[str, str]) -> bool:
        for key, expr in params.items():
            if key in SKIPPED_PARAMS:
                continue
            op, _, value = expr.partition(".")
            field = row.get(key)
            if op == "eq":
                ok = field is not None and str(field) == value
            elif op == "neq":
                ok = str(field) != value
            elif op == "is":
                ok = field is None
            elif op == "in":
                wanted = [re.sub(r"\\(.)", r"\1", v) for v in QUOTED.findall(value)]
                ok = field is not None and str(field) in wanted
            else:
                raise AssertionError(f"unsupported filter {expr}")
            if not ok:
                return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        params = dict(request.url.params)
        if (request.method, table) in self.failing:
            return httpx.Response(500, json={"message": "internal error"})
        rows = self.tables[table]
        matching = [r for r in rows if self._matches(r, params)]

        if request.method == "GET":
            if "order" in params:
                column, _, direction = params["order"].partition(".")
                matching.sort(key=lambda r: r[column], reverse=direction == "desc")
            if params.get("select", "*") != "*":
                columns = params["select"].split(",")
                matching = [{c: r.get(c) for c in columns} for r in matching]
            return httpx.Response(200, json=matching)

        if request.method == "POST":
            body = json.loads(request.content)
            prefer = request.headers.get("Prefer", "")
            for item in body if isinstance(body, list) else [body]:
                existing = next((r for r in rows if r["id"] == item["id"]), None)
                if existing is not None:
                    if "merge-duplicates" not in prefer:
                        return httpx.Response(409, json={"message": "duplicate key"})
                    existing.update(item)
                    continue
                parent = item.get("parent_id")
                if parent is not None and not any(r["id"] == parent for r in rows):
                    return httpx.Response(409, json={"message": "foreign key"})
                self.add_row(table, **item)
            return httpx.Response(201)

        if request.method == "PATCH":
            for row in matching:
                row.update(json.loads(request.content))
            return httpx.Response(204)

        if request.method == "DELETE":
            remaining = [r for r in rows if r not in matching]
            removed_ids = {r["id"] for r in matching}
            if table == "comments" and any(
                r.get("parent_id") in removed_ids for r in remaining
            ):
                return httpx.Response(409, json={"message": "foreign key"})
            self.tables[table] = remaining
            if "return=representation" in request.headers.get("Prefer", ""):
                return httpx.Response(200, json=matching)
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture()
def rest_service() -> FakeRestService:
    return FakeRestService()


@pytest.fixture()
def rest_backend(rest_service: FakeRestService) -> RestBackend:
    return RestBackend("https://archive.example", "KEY", client=rest_service.client())


@pytest.fixture()
def local_backend(tmp_path: Path) -> LocalBackend:
    return LocalBackend(tmp_path / "archive.json")


@pytest.fixture(params=["local", "remote"])
def backend(request: pytest.FixtureRequest, tmp_path: Path):
    """Each storage backend in turn."""
    if request.param == "local":
        return LocalBackend(tmp_path / "archive.json")
    service = FakeRestService()
    return RestBackend("https://archive.example", "KEY", client=service.client())
