"""PostgreSQL table source using asyncpg."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

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

# Text that a leading-number parse accepts; anything else is left out of sums.
# The exponent is capped so the prefix always fits NUMERIC.
NUMERIC_TEXT_PATTERN = r"^\s*[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]{1,4})?"

# Limits of DOUBLE PRECISION; larger values are left out, smaller ones read as zero
DOUBLE_MAX = "1.7976931348623157e308"
DOUBLE_MIN_NORMAL = "2.2250738585072014e-308"


def quote(name: str) -> str:
    return quote_identifier(name, '"')


def build_sample_query(table: str, limited: bool = True) -> str:
    query = f"SELECT * FROM {quote(table)}"
    return f"{query} LIMIT $1" if limited else query


def build_count_query(table: str) -> str:
    return f"SELECT COUNT(*) AS count FROM {quote(table)}"


def build_aggregate_query(table: str, request: AggregationRequest) -> str:
    """
    Build the GROUP BY query for a ranked aggregation.

    Args:
        table: Table name
        request: Aggregation request

    Returns:
        SQL with the bucket limit as parameter ``$1``
    """
    group = quote(request.group_field)
    label = f"COALESCE(CAST({group} AS TEXT), '{UNKNOWN_LABEL}')"

    if request.reduction == Reduction.SUM:
        text_value = f"CAST({quote(request.value_field)} AS TEXT)"
        number = f"CAST(substring({text_value} FROM '{NUMERIC_TEXT_PATTERN}') AS NUMERIC)"
        value = (
            f"COALESCE(SUM(CASE "
            f"WHEN {text_value} !~ '{NUMERIC_TEXT_PATTERN}' THEN NULL "
            f"WHEN abs({number}) > {DOUBLE_MAX} THEN NULL "
            f"WHEN abs({number}) < {DOUBLE_MIN_NORMAL} THEN 0 "
            f"ELSE CAST({number} AS DOUBLE PRECISION) "
            f"END), 0)"
        )
    else:
        value = "COUNT(*)"

    return (
        f"SELECT {label} AS label, {value} AS value "
        f"FROM {quote(table)} "
        f"GROUP BY 1 "
        f"ORDER BY value DESC "
        f"LIMIT $1"
    )


class PostgresSource(LiveSource):
    """Table in a PostgreSQL database."""

    kind = SourceKind.POSTGRESQL
    default_port = 5432

    def __init__(self, connection_details: Dict[str, Any]):
        require_fields(connection_details, ["host", "database", "user", "table"], self.kind)
        self.host = connection_details["host"]
        self.port = int(connection_details.get("port") or self.default_port)
        self.database = connection_details["database"]
        self.user = connection_details["user"]
        self.password = connection_details.get("password")
        self.table = connection_details["table"]

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[asyncpg.Connection]:
        conn = await asyncpg.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database,
            timeout=settings.source_connect_timeout_seconds,
        )
        try:
            yield conn
        finally:
            await conn.close()

    async def _fetch_rows(self, conn: asyncpg.Connection, limit: Optional[int]) -> List[Record]:
        if limit is None:
            rows = await conn.fetch(build_sample_query(self.table, limited=False))
        else:
            rows = await conn.fetch(build_sample_query(self.table), int(limit))
        return [normalize_record(dict(row)) for row in rows]

    async def _count_rows(self, conn: asyncpg.Connection) -> int:
        count = await conn.fetchval(build_count_query(self.table))
        return int(count or 0)

    async def _aggregate_rows(
        self, conn: asyncpg.Connection, request: AggregationRequest, limit: int
    ) -> List[AggregationBucket]:
        rows = await conn.fetch(build_aggregate_query(self.table, request), int(limit))
        return [
            AggregationBucket(label=str(row["label"]), value=bucket_value(row["value"]))
            for row in rows
        ]

