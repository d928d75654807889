"""Services package."""

from budgetwise.services.export import (
    ImportFormatError,
    export_filename,
    export_to_json,
    parse_import,
    read_import,
    write_export,
)
from budgetwise.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryKeyValueStorage,
    KeyValueAuditStorage,
    KeyValueStorageInterface,
    NotFoundError,
    SQLiteClient,
    SQLiteKeyValueStorage,
    StorageError,
)

__all__ = [
    # Export services
    "ImportFormatError",
    "export_filename",
    "export_to_json",
    "parse_import",
    "read_import",
    "write_export",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryKeyValueStorage",
    "KeyValueAuditStorage",
    "KeyValueStorageInterface",
    "NotFoundError",
    "SQLiteClient",
    "SQLiteKeyValueStorage",
    "StorageError",
]
