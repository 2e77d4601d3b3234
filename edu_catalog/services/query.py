"""Declarative query descriptors rendered to PostgREST requests.

A ``Query`` holds no connection. It is built with chained calls, then
rendered by ``to_request`` and sent by ``ServiceClient.execute``::

    query = (
        Query("resources")
        .select("*, categories(id, name)")
        .eq("is_published", True)
        .order("created_at", desc=True)
    )
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

# Characters that must be quoted inside a logical (or=) group
_RESERVED = re.compile(r'[,.:()"\\\s]')


def format_value(value: Any) -> str:
    """Render a Python value the way PostgREST expects it in a filter."""
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def quote_value(value: str) -> str:
    """Quote a value for use inside an or=(...) group when needed."""
    if not _RESERVED.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so a search term matches literally.

    PostgREST turns every ``*`` into ``%`` before the database sees it, so
    an asterisk in the term still acts as a wildcard.
    """
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compact_select(columns: str) -> str:
    """Strip whitespace from a select/embedding expression."""
    return re.sub(r"\s+", "", columns)


@dataclass
class Query:
    """A request against one table.

    Attributes:
        table: Table (or view) name
        method: HTTP method, derived from the chosen operation
        columns: select= expression, None to let the service decide
        filters: (column, operator, value) triples, AND-combined
        or_groups: rendered or=(...) groups, each AND-combined with filters
        ordering: order= terms such as ``created_at.desc``
        expect_single: request a single object, zero rows is an error
        body: JSON payload for writes
        on_conflict: conflict target columns for upserts
    """

    table: str
    method: str = "GET"
    columns: Optional[str] = None
    filters: list[tuple[str, str, Any]] = field(default_factory=list)
    or_groups: list[str] = field(default_factory=list)
    ordering: list[str] = field(default_factory=list)
    expect_single: bool = False
    body: Any = None
    on_conflict: Optional[str] = None

    # Operations

    def select(self, columns: str = "*") -> "Query":
        self.columns = compact_select(columns)
        return self

    def insert(self, body: Any) -> "Query":
        self.method = "POST"
        self.body = body
        return self

    def upsert(self, body: Any, on_conflict: Optional[str] = None) -> "Query":
        self.method = "POST"
        self.body = body
        self.on_conflict = on_conflict
        return self

    def update(self, body: Any) -> "Query":
        self.method = "PATCH"
        self.body = body
        return self

    def delete(self) -> "Query":
        self.method = "DELETE"
        return self

    # Filters

    def eq(self, column: str, value: Any) -> "Query":
        if value is None:
            self.filters.append((column, "is", None))
        else:
            self.filters.append((column, "eq", value))
        return self

    def ilike(self, column: str, pattern: str) -> "Query":
        self.filters.append((column, "ilike", pattern))
        return self

    def or_(self, *conditions: tuple[str, str, Any]) -> "Query":
        """Add a group of (column, operator, value) conditions joined by OR."""
        rendered = ",".join(
            f"{column}.{op}.{quote_value(format_value(value))}"
            for column, op, value in conditions
        )
        self.or_groups.append(f"({rendered})")
        return self

    def search(self, columns: tuple[str, ...], term: str) -> "Query":
        """Case-insensitive substring match of ``term`` in any of ``columns``."""
        term = escape_like(term)
        return self.or_(*[(column, "ilike", f"*{term}*") for column in columns])

    def order(self, column: str, desc: bool = False) -> "Query":
        self.ordering.append(f"{column}.{'desc' if desc else 'asc'}")
        return self

    def single(self) -> "Query":
        self.expect_single = True
        return self

    # Rendering

    @property
    def path(self) -> str:
        return f"/{self.table}"

    def params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self.columns is not None:
            params.append(("select", self.columns))
        for column, op, value in self.filters:
            params.append((column, f"{op}.{format_value(value)}"))
        for group in self.or_groups:
            params.append(("or", group))
        if self.ordering:
            params.append(("order", ",".join(self.ordering)))
        if self.on_conflict:
            params.append(("on_conflict", self.on_conflict))
        return params

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.expect_single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        if self.method == "DELETE":
            headers["Prefer"] = "return=minimal"
        elif self.method in ("POST", "PATCH"):
            prefer = ["return=representation"]
            if self.on_conflict:
                prefer.insert(0, "resolution=merge-duplicates")
            headers["Prefer"] = ",".join(prefer)
        return headers

    def to_request(self) -> dict[str, Any]:
        """Render to keyword arguments for ``httpx.AsyncClient.request``."""
        request: dict[str, Any] = {
            "method": self.method,
            "url": self.path,
            "params": self.params(),
            "headers": self.headers(),
        }
        if self.body is not None:
            request["json"] = self.body
        return request
