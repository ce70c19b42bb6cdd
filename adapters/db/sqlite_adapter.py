"""
SQLite 어댑터

aiosqlite 단일 연결 위에서 Ledger 스냅샷 테이블을 다룸.

- 연결: WAL 저널 + busy_timeout
- 스키마: PRAGMA user_version으로 테이블 버전 관리 (SCHEMA_STEPS 순차 적용)
- 스냅샷 행: 조회 / UPSERT (revision 증가) / 백업 행 추가
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# 테이블 스키마 버전 (스냅샷 JSON 문서 버전과는 별개)
SCHEMA_VERSION = 1

# 버전 N으로 올릴 때 실행하는 DDL
SCHEMA_STEPS: dict[int, tuple[str, ...]] = {
    1: (
        """
        CREATE TABLE IF NOT EXISTS ledger_snapshot (
            id             INTEGER PRIMARY KEY AUTOINCREMENT,
            snapshot_key   TEXT NOT NULL UNIQUE,
            value_json     TEXT NOT NULL,
            revision       INTEGER NOT NULL DEFAULT 1,

            updated_by     TEXT NOT NULL,
            created_at     TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """,
    ),
}


@dataclass(frozen=True)
class SnapshotRow:
    """ledger_snapshot 테이블 행"""

    snapshot_key: str
    value_json: str
    revision: int
    updated_by: str
    updated_at: str


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성

    파일 DB는 상위 디렉토리를 먼저 만들고 WAL 모드로 연다.

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
    """
    target = str(db_path)
    if target != MEMORY_DB:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(target)
    try:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=30000")
    except aiosqlite.Error:
        # SQLite 파일이 아니면 첫 PRAGMA에서 실패
        await conn.close()
        raise

    logger.info(f"SQLite 연결: {target}")
    return conn


class SchemaVersionError(RuntimeError):
    """DB 스키마가 코드가 지원하는 버전보다 높음"""


class SQLiteAdapter:
    """Ledger 스냅샷용 SQLite 어댑터

    Args:
        db_path: DB 파일 경로 또는 ":memory:"

    사용 예시:
    ```python
    async with SQLiteAdapter(Paths.LEDGER_DB) as db:
        await init_schema(db)
        revision = await db.upsert_snapshot("ledger", value_json, updated_by="engine")
        row = await db.read_snapshot("ledger")
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """연결 (이미 연결되어 있으면 무시)"""
        if self._conn is None:
            self._conn = await create_connection(self.db_path)

    async def connect_or_recover(self) -> Path | None:
        """연결 + 스키마 초기화

        DB 파일이 손상되어 열 수 없으면 "<파일명>.corrupt.<UTC 타임스탬프>"로
        옮기고 빈 DB를 새로 만든다.

        Returns:
            옮긴 손상 파일 경로 (복구하지 않았으면 None)

        Raises:
            SchemaVersionError: DB가 이 코드보다 최신 스키마인 경우
        """
        try:
            await self.connect()
            await init_schema(self)
            return None
        except SchemaVersionError:
            await self.close()
            raise
        except aiosqlite.DatabaseError as e:
            # 잠금/권한 등 OperationalError는 파일 손상이 아님
            if isinstance(e, aiosqlite.OperationalError) or self.db_path == MEMORY_DB:
                await self.close()
                raise
            logger.error(f"DB 파일을 열 수 없음: {self.db_path} ({e})")

        await self.close()
        moved = self._move_aside()

        await self.connect()
        await init_schema(self)
        return moved

    def _move_aside(self) -> Path:
        """손상 DB 파일(및 -wal/-shm)을 백업 이름으로 이동"""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        target = self.db_path.with_name(f"{self.db_path.name}.corrupt.{stamp}")
        self.db_path.rename(target)

        for suffix in ("-wal", "-shm"):
            sidecar = self.db_path.with_name(self.db_path.name + suffix)
            if sidecar.exists():
                sidecar.rename(target.with_name(target.name + suffix))

        logger.warning(f"손상된 DB 파일 이동: {target}")
        return target

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info(f"SQLite 연결 종료: {self.db_path}")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    # -------------------------------------------------------------------------
    # 범용 SQL
    # -------------------------------------------------------------------------

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] = (),
    ) -> aiosqlite.Cursor:
        return await self._require_conn().execute(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] = (),
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] = (),
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """블록 단위 트랜잭션 (정상 종료 시 커밋, 예외 시 롤백 후 재발생)"""
        conn = self._require_conn()
        try:
            yield conn
        except Exception:
            await conn.rollback()
            raise
        await conn.commit()

    async def get_schema_version(self) -> int:
        """PRAGMA user_version 조회"""
        row = await self.fetchone("PRAGMA user_version")
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # 스냅샷 행
    # -------------------------------------------------------------------------

    async def read_snapshot(self, snapshot_key: str) -> SnapshotRow | None:
        """스냅샷 행 조회 (없으면 None)"""
        row = await self.fetchone(
            """
            SELECT snapshot_key, value_json, revision, updated_by, updated_at
            FROM ledger_snapshot
            WHERE snapshot_key = ?
            """,
            (snapshot_key,),
        )
        return SnapshotRow(*row) if row else None

    async def upsert_snapshot(
        self,
        snapshot_key: str,
        value_json: str,
        updated_by: str,
        updated_at: str,
    ) -> int:
        """스냅샷 덮어쓰기 (단일 트랜잭션)

        Returns:
            저장 후 revision (최초 1, 이후 1씩 증가)
        """
        async with self.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO ledger_snapshot (snapshot_key, value_json, revision, updated_by, created_at, updated_at)
                VALUES (?, ?, 1, ?, ?, ?)
                ON CONFLICT(snapshot_key) DO UPDATE SET
                    value_json = excluded.value_json,
                    revision = ledger_snapshot.revision + 1,
                    updated_by = excluded.updated_by,
                    updated_at = excluded.updated_at
                """,
                (snapshot_key, value_json, updated_by, updated_at, updated_at),
            )
            cursor = await conn.execute(
                "SELECT revision FROM ledger_snapshot WHERE snapshot_key = ?",
                (snapshot_key,),
            )
            row = await cursor.fetchone()
        return int(row[0])

    async def insert_snapshot(self, snapshot_key: str, value_json: str, updated_by: str) -> None:
        """새 스냅샷 행 추가 (키가 이미 있으면 IntegrityError)"""
        async with self.transaction() as conn:
            await conn.execute(
                "INSERT INTO ledger_snapshot (snapshot_key, value_json, updated_by) VALUES (?, ?, ?)",
                (snapshot_key, value_json, updated_by),
            )

    async def list_snapshot_keys(self, prefix: str = "") -> list[str]:
        """접두사로 스냅샷 키 조회 (id 순)"""
        rows = await self.fetchall(
            "SELECT snapshot_key FROM ledger_snapshot WHERE substr(snapshot_key, 1, ?) = ? ORDER BY id",
            (len(prefix), prefix),
        )
        return [row[0] for row in rows]

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> int:
    """테이블 스키마를 SCHEMA_VERSION까지 올림

    이미 최신이면 아무것도 하지 않음.

    Returns:
        적용 후 스키마 버전

    Raises:
        SchemaVersionError: DB가 이 코드보다 최신 스키마인 경우
    """
    current = await adapter.get_schema_version()
    if current > SCHEMA_VERSION:
        raise SchemaVersionError(
            f"DB 스키마 버전 v{current}이 지원 버전 v{SCHEMA_VERSION}보다 높습니다"
        )

    for version in range(current + 1, SCHEMA_VERSION + 1):
        async with adapter.transaction() as conn:
            for statement in SCHEMA_STEPS[version]:
                await conn.execute(statement)
            await conn.execute(f"PRAGMA user_version = {version}")
        logger.info(f"DB 스키마 v{version} 적용")

    return SCHEMA_VERSION
