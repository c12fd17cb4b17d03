"""Common interface over file-backed and live tabular sources."""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from applens.config import get_settings
from applens.core.aggregation.aggregator import AggregationBucket, AggregationRequest
from applens.core.inference.schema_extractor import (
    FieldDescriptor,
    SchemaStrategy,
    infer_schema_from_rows,
)
from applens.utils.exceptions import ConnectionDetailsException, SourceConnectionException

logger = logging.getLogger(__name__)
settings = get_settings()

Record = Dict[str, Any]
T = TypeVar("T")


class SourceKind(str, Enum):
    """Recognized dataset source kinds."""
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MONGODB = "mongodb"

    @property
    def is_file(self) -> bool:
        return self in (SourceKind.CSV, SourceKind.JSON, SourceKind.XLSX)


class SourceSnapshot(BaseModel):
    """Sample, schema and record count captured when a dataset is created."""
    sample: List[Record] = Field(default_factory=list)
    schema_fields: List[FieldDescriptor] = Field(default_factory=list)
    records_count: int = 0


def infer_snapshot_schema(
    sample: List[Record],
    schema_rows: Optional[int],
    strategy: Optional[SchemaStrategy],
) -> List[FieldDescriptor]:
    schema_rows = schema_rows or settings.schema_sample_rows
    strategy = strategy or SchemaStrategy(settings.schema_strategy)
    return infer_schema_from_rows(sample[:schema_rows], strategy)


class TabularSource(ABC):
    """A dataset that can be sampled, counted and aggregated.

    Implementations acquire and release their own resources on every call.
    """

    kind: SourceKind

    @abstractmethod
    async def sample(self, n: int) -> List[Record]:
        """Return the first ``n`` rows."""

    @abstractmethod
    async def fetch(self, limit: Optional[int] = None) -> List[Record]:
        """Return up to ``limit`` rows, or every row when ``limit`` is None."""

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of records."""

    @abstractmethod
    async def aggregate(
        self, request: AggregationRequest, limit: Optional[int] = None
    ) -> List[AggregationBucket]:
        """Aggregate in ranked mode: value-descending, top ``limit`` buckets."""

    async def describe(
        self,
        sample_rows: int,
        schema_rows: Optional[int] = None,
        strategy: Optional[SchemaStrategy] = None,
    ) -> SourceSnapshot:
        """
        Capture a snapshot for dataset creation.

        Args:
            sample_rows: Rows to sample
            schema_rows: Leading rows of the sample used for inference
            strategy: Schema field strategy

        Returns:
            SourceSnapshot with sample, schema and total count
        """
        sample = await self.sample(sample_rows)
        records_count = await self.count()
        schema = infer_snapshot_schema(sample, schema_rows, strategy)

        logger.info(
            f"Described {self.kind.value} source: {len(sample)} sampled rows, "
            f"{len(schema)} fields, {records_count} records"
        )
        return SourceSnapshot(sample=sample, schema_fields=schema, records_count=records_count)


class LiveSource(TabularSource):
    """Base for database-backed sources.

    Subclasses provide a scoped connection and the per-connection queries;
    this class wraps every call so that driver failures surface as
    ``SourceConnectionException`` after the connection has been released.
    """

    default_port: int = 0

    @abstractmethod
    def _connect(self) -> AsyncContextManager[Any]:
        """Async context manager yielding an open connection."""

    @abstractmethod
    async def _fetch_rows(self, conn: Any, limit: Optional[int]) -> List[Record]:
        """Fetch rows over an open connection."""

    @abstractmethod
    async def _count_rows(self, conn: Any) -> int:
        """Count records over an open connection."""

    @abstractmethod
    async def _aggregate_rows(
        self, conn: Any, request: AggregationRequest, limit: int
    ) -> List[AggregationBucket]:
        """Run the pushdown aggregation over an open connection."""

    async def _run(self, operation: Callable[[Any], Awaitable[T]]) -> T:
        try:
            async with self._connect() as conn:
                return await self._bounded(operation(conn))
        except SourceConnectionException:
            raise
        except Exception as e:
            logger.error(f"{self.kind.value} source error: {e}")
            raise SourceConnectionException(self.kind.value, str(e))

    async def _bounded(self, operation: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Await a driver call under a timeout."""
        timeout = timeout or settings.source_query_timeout_seconds
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except asyncio.TimeoutError:
            raise SourceConnectionException(
                self.kind.value, f"operation timed out after {timeout:g}s"
            )

    async def sample(self, n: int) -> List[Record]:
        rows = await self._run(lambda conn: self._fetch_rows(conn, n))
        logger.info(f"Sampled {len(rows)} rows from {self.kind.value} source")
        return rows

    async def fetch(self, limit: Optional[int] = None) -> List[Record]:
        return await self._run(lambda conn: self._fetch_rows(conn, limit))

    async def count(self) -> int:
        return await self._run(self._count_rows)

    async def aggregate(
        self, request: AggregationRequest, limit: Optional[int] = None
    ) -> List[AggregationBucket]:
        limit = limit or settings.ranked_bucket_limit
        buckets = await self._run(lambda conn: self._aggregate_rows(conn, request, limit))
        logger.info(
            f"Pushed down aggregation on '{request.group_field}' to {self.kind.value}: "
            f"{len(buckets)} buckets"
        )
        return buckets

    async def describe(
        self,
        sample_rows: int,
        schema_rows: Optional[int] = None,
        strategy: Optional[SchemaStrategy] = None,
    ) -> SourceSnapshot:
        """Sample and count over a single connection."""

        async def _snapshot(conn: Any):
            sample = await self._fetch_rows(conn, sample_rows)
            records_count = await self._count_rows(conn)
            return sample, records_count

        sample, records_count = await self._run(_snapshot)
        schema = infer_snapshot_schema(sample, schema_rows, strategy)

        logger.info(
            f"Connected to {self.kind.value} source: {len(sample)} sampled rows, "
            f"{len(schema)} fields, {records_count} records"
        )
        return SourceSnapshot(sample=sample, schema_fields=schema, records_count=records_count)


def quote_identifier(name: str, quote: str) -> str:
    """
    Quote a table or column name by doubling embedded quote characters.

    This is cosmetic quoting; names still come from the dataset owner.
    """
    return f"{quote}{str(name).replace(quote, quote * 2)}{quote}"


def require_fields(details: Dict[str, Any], required: List[str], kind: SourceKind) -> None:
    """Raise when connection details lack any required field."""
    missing = [name for name in required if not details.get(name)]
    if missing:
        raise ConnectionDetailsException(
            f"{kind.value} requires {', '.join(required)} (missing: {', '.join(missing)})"
        )


def bucket_value(value: Any) -> Union[int, float]:
    """Convert a driver aggregate (int, float, Decimal or None) into a finite bucket value."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    number = float(value)
    return number if math.isfinite(number) else 0
