"""Remote store client — PostgREST tables and GoTrue auth over one httpx client.

The store only knows rows: select with filter/order/limit, insert,
update-by-key and delete-by-key. Every failure is raised as one of the
typed errors in :mod:`interview_desk.errors`:

* network failures and timeouts -> ``ConnectivityError`` (retryable)
* an error payload from the backend -> ``QueryError`` (logged, not retried)
* missing or malformed credentials -> ``ConfigurationError`` (on construction)
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import httpx

from interview_desk.config import Config
from interview_desk.errors import ConnectivityError, QueryError

log = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Query:
    """A PostgREST select, built up with chained filter calls."""

    def __init__(self, table: str, columns: str = "*") -> None:
        self.table = table
        self.params: list[tuple[str, str]] = [("select", columns)]

    def eq(self, column: str, value: Any) -> Query:
        self.params.append((column, f"eq.{_format_value(value)}"))
        return self

    def in_(self, column: str, values: list[Any]) -> Query:
        quoted = ",".join('"{}"'.format(_format_value(v).replace('"', '\\"')) for v in values)
        self.params.append((column, f"in.({quoted})"))
        return self

    def gte(self, column: str, value: Any) -> Query:
        self.params.append((column, f"gte.{_format_value(value)}"))
        return self

    def lte(self, column: str, value: Any) -> Query:
        self.params.append((column, f"lte.{_format_value(value)}"))
        return self

    def not_null(self, column: str) -> Query:
        self.params.append((column, "not.is.null"))
        return self

    def ilike_any(self, columns: list[str], term: str) -> Query:
        """Case-insensitive substring match on any of ``columns``.

        The pattern is double-quoted so commas and parentheses in ``term``
        stay part of the value.
        """
        pattern = term.replace("\\", "\\\\").replace('"', '\\"')
        clauses = ",".join(f'{c}.ilike."*{pattern}*"' for c in columns)
        self.params.append(("or", f"({clauses})"))
        return self

    def order(self, column: str, ascending: bool = True) -> Query:
        self.params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        return self

    def limit(self, n: int) -> Query:
        self.params.append(("limit", str(n)))
        return self


class SupabaseStore:
    def __init__(self, cfg: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        cfg.validate()
        self.cfg = cfg
        self.access_token: str | None = None
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # -- Client lifecycle -----------------------------------------------------

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.cfg.supabase_url,
                timeout=self.cfg.request_timeout,
                headers={"apikey": self.cfg.supabase_anon_key},
                transport=self._transport,
            )
        return self._client

    async def reset(self) -> None:
        """Drop the current HTTP client; the next call builds a fresh one."""
        log.info("Resetting backend connection")
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token or self.cfg.supabase_anon_key}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        all_headers = self._auth_headers()
        if headers:
            all_headers.update(headers)
        try:
            resp = await self.client.request(method, path, params=params, json=json, headers=all_headers)
        except httpx.TimeoutException as e:
            raise ConnectivityError(
                f"Request to {path} timed out after {self.cfg.request_timeout:g}s"
            ) from e
        except httpx.TransportError as e:
            raise ConnectivityError(f"Network connection failed: {e}") from e

        if resp.status_code >= 400:
            message, code = _error_message(resp)
            log.error("Backend error on %s %s (%s): %s", method, path, resp.status_code, message)
            raise QueryError(message, status_code=resp.status_code, code=code)

        if not resp.content:
            return None
        return resp.json()

    # -- Tables ---------------------------------------------------------------

    async def select(self, query: Query) -> list[dict]:
        rows = await self._request("GET", f"/rest/v1/{query.table}", params=query.params)
        return rows or []

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        payload = rows if isinstance(rows, list) else [rows]
        result = await self._request(
            "POST", f"/rest/v1/{table}", json=payload,
            headers={"Prefer": "return=representation"},
        )
        return result or []

    async def update(self, table: str, key: str, value: Any, values: dict) -> list[dict]:
        result = await self._request(
            "PATCH", f"/rest/v1/{table}",
            params=[(key, f"eq.{_format_value(value)}")],
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return result or []

    async def delete(self, table: str, key: str, value: Any) -> None:
        await self._request("DELETE", f"/rest/v1/{table}", params=[(key, f"eq.{_format_value(value)}")])

    # -- Auth -----------------------------------------------------------------

    async def auth(self, path: str, payload: dict | None = None, params: dict | None = None) -> dict:
        result = await self._request(
            "POST", f"/auth/v1/{path}",
            params=list(params.items()) if params else None,
            json=payload or {},
        )
        return result or {}


def _error_message(resp: httpx.Response) -> tuple[str, str]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}", ""
    if not isinstance(body, dict):
        return str(body), ""
    message = (
        body.get("message")
        or body.get("error_description")
        or body.get("msg")
        or body.get("error")
        or f"HTTP {resp.status_code}"
    )
    return str(message), str(body.get("code", "") or "")
