from .database import SQLiteStorage, StorageEngine
from .discovery import Files, NotFound, discover
from .errors import (
    DiscoveryError,
    DuplicateColumnError,
    FileOpenError,
    HeaderFormatError,
    RawCSVError,
    RowFormatError,
    RowInsertError,
    TableCreateError,
    UsageError,
)
from .header import HeaderSpec, parse_header_cell
from .identifiers import sanitize_identifier
from .loader import RowLoader
from .schema import ColumnKind, ColumnSpec, TableSchema, synthesize_schema
from .types import BatchReport, LoadReport

__all__ = [
    "BatchReport",
    "ColumnKind",
    "ColumnSpec",
    "DiscoveryError",
    "DuplicateColumnError",
    "FileOpenError",
    "Files",
    "HeaderFormatError",
    "HeaderSpec",
    "LoadReport",
    "NotFound",
    "RawCSVError",
    "RowFormatError",
    "RowInsertError",
    "RowLoader",
    "SQLiteStorage",
    "StorageEngine",
    "TableCreateError",
    "TableSchema",
    "UsageError",
    "discover",
    "parse_header_cell",
    "sanitize_identifier",
    "synthesize_schema",
]
