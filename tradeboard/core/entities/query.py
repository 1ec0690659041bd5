"""
Query Specification for Tradeboard

A store-agnostic description of a single read: which table, which columns,
which related rows to embed, how to filter, sort and truncate. Data sources
compile it into SQL, PostgREST parameters or an in-memory evaluation.
"""
from pydantic import BaseModel
from typing import Any, List, Literal, Optional, Union

FilterOp = Literal["not_null", "eq", "gt", "gte", "lt", "lte"]


class Filter(BaseModel):
    column: str
    op: FilterOp
    value: Any = None


class Order(BaseModel):
    column: str
    ascending: bool = False
    # None leaves null placement to the store (Postgres: nulls sort as largest)
    nulls_first: Optional[bool] = None


class Embed(BaseModel):
    """
    Related-table join shorthand. The embedded columns come back as a
    nested object keyed by the related table's name.
    """
    table: str
    columns: List[str]
    local_column: str
    foreign_column: str = "id"
    inner: bool = True


class QuerySpec(BaseModel):
    table: str
    columns: List[str] = ["*"]
    embeds: List[Embed] = []
    filters: List[Filter] = []
    order: Optional[Order] = None
    limit: Optional[int] = None
    single: bool = False


class QueryResult(BaseModel):
    """
    Response shape of every data source: rows on success, a message on failure.
    """
    data: Union[List[dict], dict, None] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
