"""MySQL table source using aiomysql."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import aiomysql

from applens.config import get_settings
from applens.core.aggregation.aggregator import (
    UNKNOWN_LABEL,
    AggregationBucket,
    AggregationRequest,
    Reduction,
)
from applens.core.sources.base import (
    LiveSource,
    Record,
    SourceKind,
    bucket_value,
    quote_identifier,
    require_fields,
)
from applens.core.sources.records import normalize_record

logger = logging.getLogger(__name__)
settings = get_settings()

# Bracket classes only: backslashes are escapes inside MySQL string literals
NUMERIC_TEXT_PATTERN = "^[[:space:]]*[-+]?([0-9]+[.]?[0-9]*|[.][0-9]+)([eE][-+]?[0-9]+)?"


def quote(name: str) -> str:
    return quote_identifier(name, "`")


def build_sample_query(table: str, limited: bool = True) -> str:
    query = f"SELECT * FROM {quote(table)}"
    return f"{query} LIMIT %s" if limited else query


def build_count_query(table: str) -> str:
    return f"SELECT COUNT(*) AS `count` FROM {quote(table)}"


def build_aggregate_query(table: str, request: AggregationRequest) -> str:
    """
    Build the GROUP BY query for a ranked aggregation.

    ``CAST(x AS CHAR) + 0`` reads the leading number of the text, so values
    such as ``"12kg"`` contribute 12 while text without a number is skipped.

    Args:
        table: Table name
        request: Aggregation request

    Returns:
        SQL with the bucket limit as the only parameter
    """
    group = quote(request.group_field)
    label = f"COALESCE(CAST({group} AS CHAR), '{UNKNOWN_LABEL}')"

    if request.reduction == Reduction.SUM:
        text_value = f"CAST({quote(request.value_field)} AS CHAR)"
        value = (
            f"COALESCE(SUM(CASE WHEN {text_value} REGEXP '{NUMERIC_TEXT_PATTERN}' "
            f"THEN {text_value} + 0 END), 0)"
        )
    else:
        value = "COUNT(*)"

    return (
        f"SELECT {label} AS `label`, {value} AS `value` "
        f"FROM {quote(table)} "
        f"GROUP BY 1 "
        f"ORDER BY `value` DESC "
        f"LIMIT %s"
    )


class MysqlSource(LiveSource):
    """Table in a MySQL database."""

    kind = SourceKind.MYSQL
    default_port = 3306

    def __init__(self, connection_details: Dict[str, Any]):
        require_fields(connection_details, ["host", "database", "user", "table"], self.kind)
        self.host = connection_details["host"]
        self.port = int(connection_details.get("port") or self.default_port)
        self.database = connection_details["database"]
        self.user = connection_details["user"]
        self.password = connection_details.get("password") or ""
        self.table = connection_details["table"]

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiomysql.Connection]:
        conn = await aiomysql.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            db=self.database,
            autocommit=True,
            connect_timeout=settings.source_connect_timeout_seconds,
            cursorclass=aiomysql.DictCursor,
        )
        try:
            yield conn
        finally:
            conn.close()

    async def _query(
        self, conn: aiomysql.Connection, sql: str, params: Optional[tuple] = None
    ) -> List[Dict[str, Any]]:
        async with conn.cursor() as cursor:
            await cursor.execute(sql, params)
            return list(await cursor.fetchall())

    async def _fetch_rows(self, conn: aiomysql.Connection, limit: Optional[int]) -> List[Record]:
        if limit is None:
            rows = await self._query(conn, build_sample_query(self.table, limited=False))
        else:
            rows = await self._query(conn, build_sample_query(self.table), (int(limit),))
        return [normalize_record(row) for row in rows]

    async def _count_rows(self, conn: aiomysql.Connection) -> int:
        rows = await self._query(conn, build_count_query(self.table))
        return int(rows[0]["count"]) if rows else 0

    async def _aggregate_rows(
        self, conn: aiomysql.Connection, request: AggregationRequest, limit: int
    ) -> List[AggregationBucket]:
        rows = await self._query(conn, build_aggregate_query(self.table, request), (int(limit),))
        return [
            AggregationBucket(label=str(row["label"]), value=bucket_value(row["value"]))
            for row in rows
        ]
