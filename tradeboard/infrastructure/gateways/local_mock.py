from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.entities.query import Filter, Order, QuerySpec, QueryResult


def _comparable(value: Any, other: Any) -> Any:
    # ISO strings are compared as timestamps when the other side is a datetime
    if isinstance(other, datetime) and isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _matches(row: dict, f: Filter) -> bool:
    value = row.get(f.column)
    if f.op == "not_null":
        return value is not None
    if value is None:
        return False
    left = _comparable(value, f.value)
    right = _comparable(f.value, left)
    if f.op == "eq":
        return left == right
    if f.op == "gt":
        return left > right
    if f.op == "gte":
        return left >= right
    if f.op == "lt":
        return left < right
    return left <= right


def _sorted(rows: List[dict], order: Order) -> List[dict]:
    present = [r for r in rows if r.get(order.column) is not None]
    missing = [r for r in rows if r.get(order.column) is None]
    present.sort(key=lambda r: _comparable(r[order.column], None), reverse=not order.ascending)

    # Postgres default: nulls sort as the largest value
    nulls_first = order.nulls_first
    if nulls_first is None:
        nulls_first = not order.ascending
    return missing + present if nulls_first else present + missing


class InMemoryDataSource(IDataSource):
    """
    Evaluates QuerySpecs over plain dict rows, with Postgres ordering semantics.
    Used by tests and for running the API without a backing store.
    """

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None, configured: bool = True):
        self.tables = tables if tables is not None else {}
        self.configured = configured

    def is_configured(self) -> bool:
        return self.configured

    async def execute(self, spec: QuerySpec) -> QueryResult:
        if spec.table not in self.tables:
            return QueryResult(error=f'relation "{spec.table}" does not exist')

        rows = [r for r in self.tables[spec.table] if all(_matches(r, f) for f in spec.filters)]
        if spec.order:
            rows = _sorted(rows, spec.order)

        projected = []
        for row in rows:
            out = dict(row) if spec.columns == ["*"] else {c: row.get(c) for c in spec.columns}
            keep = True
            for embed in spec.embeds:
                related = next(
                    (
                        r for r in self.tables.get(embed.table, [])
                        if r.get(embed.foreign_column) == row.get(embed.local_column)
                    ),
                    None,
                )
                if related is None and embed.inner:
                    keep = False
                    break
                out[embed.table] = {c: related.get(c) for c in embed.columns} if related else None
            if keep:
                projected.append(out)

        if spec.limit is not None:
            projected = projected[:spec.limit]

        if spec.single:
            if len(projected) != 1:
                return QueryResult(error=f"JSON object requested, {len(projected)} rows returned")
            return QueryResult(data=projected[0])
        return QueryResult(data=projected)
