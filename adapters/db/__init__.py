"""
데이터베이스 어댑터

SQLite WAL 연결과 ledger_snapshot 테이블 접근.
"""

from adapters.db.sqlite_adapter import (
    SCHEMA_VERSION,
    SQLiteAdapter,
    SchemaVersionError,
    SnapshotRow,
    create_connection,
    init_schema,
)

__all__ = [
    "SCHEMA_VERSION",
    "SQLiteAdapter",
    "SchemaVersionError",
    "SnapshotRow",
    "create_connection",
    "init_schema",
]
