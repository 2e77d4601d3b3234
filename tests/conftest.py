"""Shared fixtures: an in-memory stand-in for the hosted service.

``FakeSupabase`` answers the subset of PostgREST and GoTrue requests the
client sends, so tests exercise the real request rendering end to end
through ``httpx.MockTransport``.
"""

import json
import re
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from edu_catalog.config import Settings
from edu_catalog.services import create_catalog

SINGLE_OBJECT = "application/vnd.pgrst.object+json"
RESERVED_PARAMS = {"select", "order", "or", "on_conflict"}
FOREIGN_KEYS = {"categories": "category_id", "resources": "resource_id"}
UNIQUE_KEYS = {"user_favorites": ("user_id", "resource_id")}

CATEGORIES = [
    {"id": "cat-prog", "name": "Programming", "color": "#3b82f6", "icon": "code"},
    {"id": "cat-math", "name": "Mathematics", "color": "#10b981", "icon": "calculator"},
    {"id": "cat-design", "name": "Design", "color": "#f59e0b", "icon": "palette"},
]


def _resource(id, title, description, author, type, level, category_id,
              created_at, featured=False, published=True):
    return {
        "id": id,
        "title": title,
        "description": description,
        "author": author,
        "type": type,
        "difficulty_level": level,
        "tags": [],
        "views_count": 0,
        "downloads_count": 0,
        "is_featured": featured,
        "is_published": published,
        "category_id": category_id,
        "created_at": created_at,
    }


RESOURCES = [
    _resource("res-1", "Python Basics", "Learn to program from scratch", "Ada Writer",
              "book", "beginner", "cat-prog", "2024-01-01T00:00:00+00:00", featured=True),
    _resource("res-2", "Linear Algebra Lectures", "Vectors and matrices", "Maria Lopez",
              "video", "intermediate", "cat-math", "2024-02-01T00:00:00+00:00"),
    _resource("res-3", "Advanced Python Patterns", "Metaclasses and descriptors", "Ada Writer",
              "article", "advanced", "cat-prog", "2024-03-01T00:00:00+00:00"),
    _resource("res-4", "Color Theory Guide", "Palettes generated with PYTHON scripts",
              "Lena Hart", "guide", "intermediate", "cat-design", "2024-04-01T00:00:00+00:00"),
    _resource("res-5", "Calculus Course", "Limits, derivatives, integrals", "Monty Pythonson",
              "course", "beginner", "cat-math", "2024-05-01T00:00:00+00:00", featured=True),
    _resource("res-6", "Draft Python Notes", "Unfinished notes", "Ada Writer",
              "reference", "beginner", "cat-prog", "2024-06-01T00:00:00+00:00",
              featured=True, published=False),
]


def _split_outside_quotes(text: str, sep: str = ",") -> list[str]:
    parts, current, depth, in_quote, escaped = [], "", 0, False, False
    for char in text:
        if escaped:
            current += char
            escaped = False
        elif char == "\\" and in_quote:
            current += char
            escaped = True
        elif char == '"':
            in_quote = not in_quote
            current += char
        elif char == "(" and not in_quote:
            depth += 1
            current += char
        elif char == ")" and not in_quote:
            depth -= 1
            current += char
        elif char == sep and depth == 0 and not in_quote:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def _as_text(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _like_to_regex(pattern: str) -> str:
    out, chars = "", iter(pattern)
    for char in chars:
        if char == "\\":
            out += re.escape(next(chars, "\\"))
        elif char in "*%":
            out += ".*"
        elif char == "_":
            out += "."
        else:
            out += re.escape(char)
    return out


def _matches(row: dict, column: str, op: str, operand: str) -> bool:
    value = row.get(column)
    if op == "eq":
        return _as_text(value) == operand
    if op == "is":
        return _as_text(value) == operand
    if op == "ilike":
        pattern = _like_to_regex(operand)
        return value is not None and re.fullmatch(pattern, str(value), re.IGNORECASE) is not None
    raise AssertionError(f"unsupported operator {op}")


def _parse_select(select: str) -> tuple[list[str], dict[str, str]]:
    columns, embeds = [], {}
    for item in _split_outside_quotes(select):
        if "(" in item:
            name, inner = item.split("(", 1)
            embeds[name] = inner[:-1]
        else:
            columns.append(item)
    return columns, embeds


class FakeSupabase:
    """In-memory tables plus a tiny auth server."""

    def __init__(self):
        self.tables = {
            "categories": [dict(c) for c in CATEGORIES],
            "resources": [dict(r) for r in RESOURCES],
            "user_favorites": [],
            "user_progress": [],
        }
        self.requests: list[httpx.Request] = []
        self.users: dict[str, dict] = {}
        self.tokens: dict[str, dict] = {}
        self.refresh_tokens: dict[str, dict] = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.fail_with = None

    # Helpers for tests

    def rest_requests(self, table: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/rest/v1/{table}"]

    def _now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    # Transport entry point

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        path = request.url.path
        if path.startswith("/rest/v1/rpc/"):
            return self._rpc(request, path.rsplit("/", 1)[-1])
        if path.startswith("/rest/v1/"):
            return self._table(request, path[len("/rest/v1/"):])
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1"):])
        return httpx.Response(404, json={"message": "unknown route"})

    # PostgREST

    def _filtered(self, table: str, request: httpx.Request) -> list[dict]:
        rows = self.tables[table]
        for key, raw in request.url.params.multi_items():
            if key in RESERVED_PARAMS:
                continue
            op, operand = raw.split(".", 1)
            rows = [r for r in rows if _matches(r, key, op, operand)]
        for group in request.url.params.get_list("or"):
            conditions = []
            for cond in _split_outside_quotes(group[1:-1]):
                column, op, operand = cond.split(".", 2)
                conditions.append((column, op, _unquote(operand)))
            rows = [r for r in rows if any(_matches(r, *c) for c in conditions)]
        return rows

    def _project(self, row: dict, select: str) -> dict:
        columns, embeds = _parse_select(select)
        out = dict(row) if "*" in columns else {c: row.get(c) for c in columns}
        for name, inner in embeds.items():
            target = next(
                (t for t in self.tables[name] if t["id"] == row.get(FOREIGN_KEYS[name])), None
            )
            out[name] = self._project(target, inner) if target else None
        return out

    def _respond(self, request: httpx.Request, rows: list[dict], status: int = 200):
        select = request.url.params.get("select", "*")
        body = [self._project(r, select) for r in rows]
        if request.headers.get("accept") == SINGLE_OBJECT:
            if len(body) != 1:
                return httpx.Response(406, json={
                    "code": "PGRST116",
                    "message": "JSON object requested, multiple (or no) rows returned",
                    "details": f"The result contains {len(body)} rows",
                })
            return httpx.Response(status, json=body[0])
        return httpx.Response(status, json=body)

    def _table(self, request: httpx.Request, table: str) -> httpx.Response:
        if request.method == "GET":
            rows = list(self._filtered(table, request))
            order = request.url.params.get("order")
            if order:
                for term in reversed(order.split(",")):
                    column, direction = term.split(".")
                    rows.sort(key=lambda r: r.get(column), reverse=direction == "desc")
            return self._respond(request, rows)

        if request.method == "POST":
            payload = json.loads(request.content)
            on_conflict = request.url.params.get("on_conflict")
            if on_conflict:
                return self._upsert(request, table, payload, on_conflict.split(","))
            return self._insert(request, table, payload)

        if request.method == "PATCH":
            payload = json.loads(request.content)
            rows = self._filtered(table, request)
            for row in rows:
                row.update(payload)
            return self._respond(request, rows)

        if request.method == "DELETE":
            doomed = {id(r) for r in self._filtered(table, request)}
            self.tables[table] = [r for r in self.tables[table] if id(r) not in doomed]
            return httpx.Response(204)

        return httpx.Response(405)

    def _insert(self, request, table, payload) -> httpx.Response:
        keys = UNIQUE_KEYS.get(table)
        if keys and any(all(r[k] == payload[k] for k in keys) for r in self.tables[table]):
            return httpx.Response(409, json={
                "code": "23505",
                "message": f'duplicate key value violates unique constraint "{table}_key"',
                "details": None,
                "hint": None,
            })
        row = {"id": str(uuid.uuid4()), "created_at": self._now(), **payload}
        self.tables[table].append(row)
        return self._respond(request, [row], status=201)

    def _upsert(self, request, table, payload, keys) -> httpx.Response:
        existing = next(
            (r for r in self.tables[table] if all(r.get(k) == payload.get(k) for k in keys)),
            None,
        )
        if existing is None:
            existing = {"id": str(uuid.uuid4()), "created_at": self._now()}
            self.tables[table].append(existing)
        existing.update(payload)
        existing["updated_at"] = self._now()
        return self._respond(request, [existing], status=201)

    def _rpc(self, request: httpx.Request, function: str) -> httpx.Response:
        column = {"increment_views": "views_count", "increment_downloads": "downloads_count"}
        if function not in column:
            return httpx.Response(404, json={"code": "PGRST202", "message": "function not found"})
        resource_id = json.loads(request.content)["resource_id"]
        for row in self.tables["resources"]:
            if row["id"] == resource_id:
                row[column[function]] += 1
        return httpx.Response(204)

    # GoTrue

    def _issue(self, user: dict) -> dict:
        access, refresh = f"access-{uuid.uuid4().hex}", f"refresh-{uuid.uuid4().hex}"
        self.tokens[access] = user
        self.refresh_tokens[refresh] = user
        return {
            "access_token": access,
            "token_type": "bearer",
            "expires_in": 3600,
            "refresh_token": refresh,
            "user": user,
        }

    def _auth(self, request: httpx.Request, path: str) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        bearer = request.headers.get("authorization", "").removeprefix("Bearer ")

        if path == "/signup":
            if body["email"] in self.users:
                return httpx.Response(422, json={
                    "code": 422, "error_code": "user_already_exists",
                    "msg": "User already registered",
                })
            user = {"id": str(uuid.uuid4()), "email": body["email"]}
            self.users[body["email"]] = {"password": body["password"], "user": user}
            return httpx.Response(200, json=self._issue(user))

        if path == "/token":
            grant = request.url.params.get("grant_type")
            if grant == "password":
                account = self.users.get(body["email"])
                if not account or account["password"] != body["password"]:
                    return httpx.Response(400, json={
                        "code": 400, "error_code": "invalid_credentials",
                        "msg": "Invalid login credentials",
                    })
                return httpx.Response(200, json=self._issue(account["user"]))
            if grant == "refresh_token":
                user = self.refresh_tokens.pop(body["refresh_token"], None)
                if user is None:
                    return httpx.Response(400, json={
                        "code": 400, "error_code": "refresh_token_not_found",
                        "msg": "Invalid Refresh Token",
                    })
                return httpx.Response(200, json=self._issue(user))

        if path == "/logout":
            self.tokens.pop(bearer, None)
            return httpx.Response(204)

        if path == "/user":
            user = self.tokens.get(bearer)
            if user is None:
                return httpx.Response(401, json={
                    "code": 401, "error_code": "bad_jwt", "msg": "invalid JWT",
                })
            return httpx.Response(200, json=user)

        return httpx.Response(404, json={"msg": "unknown auth route"})


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-test-key")
    monkeypatch.delenv("SUPABASE_TIMEOUT", raising=False)
    return Settings()


@pytest.fixture
def fake_service() -> FakeSupabase:
    return FakeSupabase()


@pytest_asyncio.fixture
async def catalog(settings, fake_service):
    """A catalog wired to the in-memory service."""
    catalog = create_catalog(settings, transport=httpx.MockTransport(fake_service.handle))
    yield catalog
    await catalog.aclose()
