import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import httpx

from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.entities.query import Filter, QuerySpec, QueryResult

logger = logging.getLogger(__name__)

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _literal(value: Any) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_params(spec: QuerySpec) -> List[Tuple[str, str]]:
    """
    Translates a QuerySpec into PostgREST query parameters, e.g.

        select=id,user_id,profiles!inner(username,level)
        pnl_percent=not.is.null
        created_at=gte.2026-10-11T04:00:00+00:00
        order=beat_market_delta.desc.nullslast
        limit=50
    """
    select = list(spec.columns)
    for embed in spec.embeds:
        hint = "!inner" if embed.inner else ""
        select.append(f"{embed.table}{hint}({','.join(embed.columns)})")

    params = [("select", ",".join(select))]
    params.extend(_filter_param(f) for f in spec.filters)

    if spec.order:
        order = f"{spec.order.column}.{'asc' if spec.order.ascending else 'desc'}"
        if spec.order.nulls_first is True:
            order += ".nullsfirst"
        elif spec.order.nulls_first is False:
            order += ".nullslast"
        params.append(("order", order))

    if spec.limit is not None:
        params.append(("limit", str(spec.limit)))
    return params


def _filter_param(f: Filter) -> Tuple[str, str]:
    if f.op == "not_null":
        return f.column, "not.is.null"
    return f.column, f"{f.op}.{_literal(f.value)}"


class SupabaseRestGateway(IDataSource):
    """
    Implementation of IDataSource for a Supabase project's PostgREST endpoint.
    Reads only; the anon key is enough as long as row level security allows public reads.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = (url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self.transport = transport

        if self.is_configured():
            logger.info(f"SupabaseRestGateway initialized. URL: {self.url}")
        else:
            logger.warning("Supabase credentials not found. Running in offline mode.")

    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def execute(self, spec: QuerySpec) -> QueryResult:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": SINGLE_OBJECT if spec.single else "application/json",
        }

        try:
            async with httpx.AsyncClient(
                base_url=f"{self.url}/rest/v1",
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.get(f"/{spec.table}", params=build_params(spec), headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Request to {spec.table} failed: {e}")
            return QueryResult(error=str(e) or type(e).__name__)

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"Query on {spec.table} failed: {message}")
            return QueryResult(error=message)

        try:
            return QueryResult(data=response.json())
        except ValueError as e:
            return QueryResult(error=f"Invalid JSON from {spec.table}: {e}")

    def _error_message(self, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"{response.status_code}: {response.text}"
        if isinstance(body, dict) and body.get("message"):
            return f"{response.status_code} {body.get('code', '')}: {body['message']}".strip()
        return f"{response.status_code}: {body}"
