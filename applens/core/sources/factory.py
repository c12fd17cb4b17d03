"""Construction of tabular sources from dataset descriptors."""

import logging
from typing import Any, Dict, Optional, Type, Union

from applens.core.sources.base import LiveSource, SourceKind, TabularSource
from applens.core.sources.file_source import FileSource
from applens.core.sources.mongo_source import MongoSource
from applens.core.sources.mysql_source import MysqlSource
from applens.core.sources.postgres_source import PostgresSource
from applens.utils.exceptions import ConnectionDetailsException, UnsupportedSourceException

logger = logging.getLogger(__name__)

LIVE_SOURCES: Dict[SourceKind, Type[LiveSource]] = {
    SourceKind.POSTGRESQL: PostgresSource,
    SourceKind.MYSQL: MysqlSource,
    SourceKind.MONGODB: MongoSource,
}


def resolve_source_kind(source_kind: Union[SourceKind, str]) -> SourceKind:
    """Map a source type name onto a known kind, rejecting anything else."""
    if isinstance(source_kind, SourceKind):
        return source_kind
    try:
        return SourceKind(str(source_kind).lower())
    except ValueError:
        raise UnsupportedSourceException(str(source_kind))


def create_source(
    source_kind: Union[SourceKind, str],
    file_path: Optional[str] = None,
    connection_details: Optional[Dict[str, Any]] = None,
) -> TabularSource:
    """
    Build the source for a dataset. No I/O happens here.

    Args:
        source_kind: Kind of the dataset source
        file_path: Stored file for file-backed kinds
        connection_details: Connection fields for database kinds

    Returns:
        A TabularSource for the dataset
    """
    kind = resolve_source_kind(source_kind)

    if kind.is_file:
        if not file_path:
            raise ConnectionDetailsException(f"{kind.value} dataset has no stored file")
        return FileSource(file_path, kind)

    if not connection_details:
        raise ConnectionDetailsException(f"{kind.value} requires connection details")

    logger.debug(f"Creating {kind.value} source")
    return LIVE_SOURCES[kind](connection_details)
