"""MongoDB collection source using pymongo."""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote_plus

from pymongo import MongoClient

from applens.config import get_settings
from applens.core.aggregation.aggregator import (
    UNKNOWN_LABEL,
    AggregationBucket,
    AggregationRequest,
    Reduction,
    to_label,
)
from applens.core.inference.numeric import FLOAT_PREFIX_PATTERN
from applens.core.sources.base import (
    LiveSource,
    Record,
    SourceKind,
    bucket_value,
    require_fields,
)
from applens.core.sources.records import normalize_record

logger = logging.getLogger(__name__)
settings = get_settings()

T = TypeVar("T")

NAN = float("nan")
DOUBLE_MAX = sys.float_info.max


def build_uri(connection_details: Dict[str, Any], default_port: int = 27017) -> str:
    """
    Build a connection URI from host, port and credentials.

    Args:
        connection_details: Connection details without a ``uri``

    Returns:
        A ``mongodb://`` URI
    """
    host = connection_details["host"]
    port = int(connection_details.get("port") or default_port)
    user = connection_details.get("user")
    password = connection_details.get("password")

    credentials = ""
    if user:
        credentials = quote_plus(str(user))
        if password:
            credentials += f":{quote_plus(str(password))}"
        credentials += "@"
    return f"mongodb://{credentials}{host}:{port}"


def build_group_key(field_name: str) -> Dict[str, Any]:
    """
    Group on the display label of a value so ``1`` and ``"1"`` share a bucket.

    Dates are rendered like ``datetime.isoformat`` without fractions; values
    with no string form (documents, arrays) and missing values group as
    ``"Unknown"``.
    """
    field = f"${field_name}"
    return {
        "$switch": {
            "branches": [
                {
                    "case": {"$eq": [{"$type": field}, "date"]},
                    "then": {"$dateToString": {"date": field, "format": "%Y-%m-%dT%H:%M:%S"}},
                },
            ],
            "default": {
                "$convert": {
                    "input": field,
                    "to": "string",
                    "onError": UNKNOWN_LABEL,
                    "onNull": UNKNOWN_LABEL,
                }
            },
        }
    }


def _is_finite(expression: Any) -> Dict[str, Any]:
    # NaN compares equal to NaN and sorts below every number in aggregation
    return {
        "$and": [
            {"$ne": [expression, None]},
            {"$ne": [expression, NAN]},
            {"$lte": [{"$abs": expression}, DOUBLE_MAX]},
        ]
    }


def build_number_expression(field_name: str) -> Dict[str, Any]:
    """Numbers as they are, strings by their leading number, anything else null."""
    field = f"${field_name}"
    leading_number = {
        "$let": {
            "vars": {"found": {"$regexFind": {"input": {"$trim": {"input": field}}, "regex": FLOAT_PREFIX_PATTERN}}},
            "in": {
                "$convert": {"input": "$$found.match", "to": "double", "onError": None, "onNull": None}
            },
        }
    }
    return {
        "$switch": {
            "branches": [
                {"case": {"$isNumber": field}, "then": {"$toDouble": field}},
                {"case": {"$eq": [{"$type": field}, "string"]}, "then": leading_number},
            ],
            "default": None,
        }
    }


def build_value_expression(request: AggregationRequest) -> Any:
    """
    Accumulator for ``$group``.

    Sums skip each non-finite or unparseable value on its own, so one NaN
    document does not poison its group.
    """
    if request.reduction != Reduction.SUM:
        return {"$sum": 1}

    return {
        "$sum": {
            "$let": {
                "vars": {"number": build_number_expression(request.value_field)},
                "in": {"$cond": [_is_finite("$$number"), "$$number", 0]},
            }
        }
    }


def build_pipeline(request: AggregationRequest, limit: int) -> List[Dict[str, Any]]:
    """
    Build the ranked aggregation pipeline.

    Args:
        request: Aggregation request
        limit: Number of buckets kept

    Returns:
        Pipeline stages for ``collection.aggregate``
    """
    return [
        {"$group": {"_id": build_group_key(request.group_field), "value": build_value_expression(request)}},
        {"$sort": {"value": -1}},
        {"$limit": int(limit)},
    ]


class MongoSource(LiveSource):
    """Collection in a MongoDB database.

    pymongo is synchronous, so every driver call runs in the default executor.
    """

    kind = SourceKind.MONGODB
    default_port = 27017

    def __init__(self, connection_details: Dict[str, Any]):
        required = ["database", "collection"]
        if not connection_details.get("uri"):
            required = ["host"] + required
        require_fields(connection_details, required, self.kind)

        self.uri = connection_details.get("uri") or build_uri(connection_details, self.default_port)
        self.database = connection_details["database"]
        self.collection = connection_details["collection"]

    async def _in_executor(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[MongoClient]:
        timeout_ms = int(settings.source_connect_timeout_seconds * 1000)
        client = MongoClient(
            self.uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
        )
        try:
            yield client
        finally:
            await self._in_executor(client.close)

    def _collection(self, client: MongoClient):
        return client[self.database][self.collection]

    async def _fetch_rows(self, client: MongoClient, limit: Optional[int]) -> List[Record]:
        def _find() -> List[Dict[str, Any]]:
            cursor = self._collection(client).find({})
            if limit is not None:
                cursor = cursor.limit(int(limit))
            return list(cursor)

        documents = await self._in_executor(_find)
        return [normalize_record(document) for document in documents]

    async def _count_rows(self, client: MongoClient) -> int:
        return await self._in_executor(self._collection(client).count_documents, {})

    async def _aggregate_rows(
        self, client: MongoClient, request: AggregationRequest, limit: int
    ) -> List[AggregationBucket]:
        pipeline = build_pipeline(request, limit)

        def _aggregate() -> List[Dict[str, Any]]:
            return list(self._collection(client).aggregate(pipeline))

        rows = await self._in_executor(_aggregate)
        return [
            AggregationBucket(label=to_label(row.get("_id")), value=bucket_value(row.get("value")))
            for row in rows
        ]
