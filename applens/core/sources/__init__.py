"""Tabular sources over files and live databases."""

from .base import LiveSource, Record, SourceKind, SourceSnapshot, TabularSource
from .factory import create_source, resolve_source_kind
from .file_source import FileSource, detect_file_kind, parse_file
from .mongo_source import MongoSource
from .mysql_source import MysqlSource
from .postgres_source import PostgresSource

__all__ = [
    'LiveSource',
    'Record',
    'SourceKind',
    'SourceSnapshot',
    'TabularSource',
    'create_source',
    'resolve_source_kind',
    'FileSource',
    'detect_file_kind',
    'parse_file',
    'MongoSource',
    'MysqlSource',
    'PostgresSource',
]
