"""HTTP client for the hosted data and auth service (PostgREST + GoTrue).

One ``ServiceClient`` is built per process and handed to the query
adapter and the auth bridge. It owns the connection pool, the anon key
and the bearer token of the current session.
"""

from typing import Any, Optional

import httpx
import structlog

from edu_catalog.config import Settings
from edu_catalog.errors import (
    Conflict,
    NetworkError,
    NotFound,
    ServiceError,
    ValidationError,
)
from edu_catalog.services.query import Query
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
SINGLE_ROW_EXPECTED = "PGRST116"
UNIQUE_VIOLATION = "23505"
CONFLICT_AUTH_CODES = {"user_already_exists", "email_exists"}


def error_from_response(response: httpx.Response) -> ServiceError:
    """Map an error response from either service to the error taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    raw_code = body.get("error_code") or body.get("code") or body.get("error")
    code = str(raw_code) if raw_code is not None else None
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or response.reason_phrase
        or f"HTTP {response.status_code}"
    )
    details = body.get("details")
    status = response.status_code

    if code == UNIQUE_VIOLATION or code in CONFLICT_AUTH_CODES:
        cls = Conflict
    elif code and code[:2] in ("22", "23") and len(code) == 5:
        # SQLSTATE data exception / integrity constraint classes
        cls = ValidationError
    elif code == SINGLE_ROW_EXPECTED:
        cls = NotFound
    elif status == 409:
        cls = Conflict
    elif status == 404:
        cls = NotFound
    elif status in (400, 422):
        cls = ValidationError
    else:
        return ServiceError(message, code=code, status_code=status, details=details)
    return cls(message, code=code, details=details)


class ServiceClient:
    """Client for the Supabase REST and auth endpoints."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rest_url = settings.rest_base_url
        self.auth_url = settings.auth_base_url
        self.anon_key = settings.supabase_anon_key
        self.access_token: Optional[str] = None
        self._http = httpx.AsyncClient(
            timeout=settings.request_timeout,
            transport=transport,
        )

    def _get_headers(self, token: Optional[str] = None) -> dict:
        bearer = token or self.access_token or self.anon_key
        return {"apikey": self.anon_key, "Authorization": f"Bearer {bearer}"}

    async def execute(self, query: Query) -> Result[Any]:
        """Send a table query and return its rows (or row, for single())."""
        request = query.to_request()
        request["url"] = f"{self.rest_url}{request['url']}"
        request["headers"] = {**self._get_headers(), **request["headers"]}
        return await self._send(**request)

    async def rpc(self, function: str, params: Optional[dict] = None) -> Result[Any]:
        """Invoke a remote procedure."""
        return await self._send(
            method="POST",
            url=f"{self.rest_url}/rpc/{function}",
            headers=self._get_headers(),
            json=params or {},
        )

    async def auth_request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> Result[Any]:
        """Send a request to the auth service."""
        return await self._send(
            method=method,
            url=f"{self.auth_url}{path}",
            headers=self._get_headers(token),
            json=json,
            params=params,
        )

    async def _send(self, method: str, url: str, **kwargs) -> Result[Any]:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("service_unreachable", method=method, url=url, error=str(e))
            return Result.fail(NetworkError(str(e) or type(e).__name__, code="network"))

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "service_request_failed",
                method=method,
                url=url,
                status=response.status_code,
                code=error.code,
                error_type=type(error).__name__,
            )
            return Result.fail(error)

        if response.status_code == 204 or not response.content:
            return Result.ok(None)
        try:
            return Result.ok(response.json())
        except ValueError:
            return Result.fail(
                ServiceError("Malformed response from service", code="invalid_json")
            )

    async def aclose(self) -> None:
        await self._http.aclose()
