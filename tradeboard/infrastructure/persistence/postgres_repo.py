import asyncio
import logging
import re
import psycopg2
from psycopg2.extras import RealDictCursor
from typing import List, Tuple
from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.entities.query import Filter, QuerySpec, QueryResult

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COMPARISONS = {
    "eq": "=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}


def _ident(name: str) -> str:
    if not IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def compile_query(spec: QuerySpec) -> Tuple[str, List]:
    """
    Translates a QuerySpec into a parameterised SELECT.

    The base table is aliased t and each embed e0, e1, ... Embedded columns
    are folded into a JSON object named after the embedded table, so rows
    come back in the same nested shape as the REST gateway's.
    """
    params: List = []

    if spec.columns == ["*"]:
        select_list = ["t.*"]
    else:
        select_list = [f"t.{_ident(c)}" for c in spec.columns]

    joins = []
    for i, embed in enumerate(spec.embeds):
        alias = f"e{i}"
        pairs = ", ".join(f"'{c}', {alias}.{_ident(c)}" for c in embed.columns)
        select_list.append(f"json_build_object({pairs}) AS {_ident(embed.table)}")
        join_type = "INNER JOIN" if embed.inner else "LEFT JOIN"
        joins.append(
            f"{join_type} {_ident(embed.table)} {alias} "
            f"ON {alias}.{_ident(embed.foreign_column)} = t.{_ident(embed.local_column)}"
        )

    query = f"SELECT {', '.join(select_list)} FROM {_ident(spec.table)} t"
    for join in joins:
        query += f" {join}"

    if spec.filters:
        conditions = [_compile_filter(f, params) for f in spec.filters]
        query += " WHERE " + " AND ".join(conditions)

    if spec.order:
        query += f" ORDER BY t.{_ident(spec.order.column)} {'ASC' if spec.order.ascending else 'DESC'}"
        if spec.order.nulls_first is True:
            query += " NULLS FIRST"
        elif spec.order.nulls_first is False:
            query += " NULLS LAST"

    if spec.limit is not None:
        query += " LIMIT %s"
        params.append(spec.limit)

    return query, params


def _compile_filter(f: Filter, params: List) -> str:
    column = f"t.{_ident(f.column)}"
    if f.op == "not_null":
        return f"{column} IS NOT NULL"
    params.append(f.value)
    return f"{column} {COMPARISONS[f.op]} %s"


class PostgresRepo(IDataSource):
    """
    Direct PostgreSQL access via psycopg2. Each query opens its own
    connection on a worker thread so the event loop never blocks.
    """

    def __init__(self, dsn: str):
        self.dsn = dsn

    def is_configured(self) -> bool:
        return bool(self.dsn)

    async def execute(self, spec: QuerySpec) -> QueryResult:
        try:
            rows = await asyncio.to_thread(self._fetch, spec)
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Query on {spec.table} failed: {e}")
            return QueryResult(error=str(e).strip())

        if spec.single:
            if len(rows) != 1:
                return QueryResult(error=f"Expected a single row from {spec.table}, got {len(rows)}")
            return QueryResult(data=rows[0])
        return QueryResult(data=rows)

    def _fetch(self, spec: QuerySpec) -> List[dict]:
        query, params = compile_query(spec)

        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor(cursor_factory=RealDictCursor)
            cur.execute(query, params)
            rows = [dict(row) for row in cur.fetchall()]
            cur.close()
        finally:
            conn.close()
        return rows
