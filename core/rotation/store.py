"""
LedgerStore - Ledger 스냅샷 저장소

ledger_snapshot 테이블의 단일 행에 Ledger 전체를 JSON 문서로 저장.

- load(): 스냅샷 로드. 없거나 읽을 수 없으면 기본 명단으로 초기화 후 즉시 저장.
          구 버전 스냅샷은 마이그레이션 후 한 번 다시 저장.
          DB 연결이 없거나 조회가 실패하면 저장하지 않은 기본 명단으로 시작.
- save(): 전체 스냅샷 덮어쓰기 (UPSERT, 단일 트랜잭션).
          실패 시 로그만 남기고 False 반환 (메모리 상태가 기준).

fairnessRatio는 캐시일 뿐이며 로드 시 항상 재계산.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.constants import LedgerSchema
from core.rotation.errors import DuplicateNameError
from core.rotation.migrations import SnapshotFormatError, migrate
from core.rotation.models import Ledger, Participant
from core.types import RatioPolicy

logger = logging.getLogger(__name__)

# 손상 스냅샷 백업 키: "<snapshot_key>.corrupt.<UTC 타임스탬프>"
BACKUP_INFIX = ".corrupt."


# =========================================================================
# 직렬화
# =========================================================================


def ledger_to_document(ledger: Ledger) -> dict[str, Any]:
    """Ledger를 스냅샷 문서로 변환 (Decimal은 문자열로 저장)"""
    return {
        "version": LedgerSchema.CURRENT_VERSION,
        "participants": [
            {
                "name": p.name,
                "paymentCount": p.payment_count,
                "totalPaid": str(p.total_paid),
                "attendanceCount": p.attendance_count,
                "fairnessRatio": str(p.fairness_ratio),
            }
            for p in ledger
        ],
    }


def document_to_ledger(document: dict[str, Any], ratio_policy: RatioPolicy) -> Ledger:
    """현재 버전 스냅샷 문서를 Ledger로 변환

    Raises:
        SnapshotFormatError: 필수 필드 누락, 값 오류, 중복 이름
    """
    participants = []
    for record in document["participants"]:
        if not isinstance(record, dict):
            raise SnapshotFormatError("참가자 레코드가 객체가 아닙니다")

        name = record.get("name")
        if not isinstance(name, str) or not name:
            raise SnapshotFormatError(f"참가자 이름이 잘못되었습니다: {name!r}")

        participants.append(
            Participant(
                name=name,
                payment_count=_parse_count(record, "paymentCount"),
                total_paid=_parse_amount(record, "totalPaid"),
                attendance_count=_parse_count(record, "attendanceCount"),
            )
        )

    try:
        return Ledger(participants, ratio_policy)
    except DuplicateNameError as e:
        raise SnapshotFormatError(str(e)) from e


def _parse_count(record: dict[str, Any], field: str) -> int:
    value = record.get(field)
    if isinstance(value, bool) or value is None:
        raise SnapshotFormatError(f"'{record.get('name')}'의 {field} 필드가 없습니다")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise SnapshotFormatError(f"'{record.get('name')}'의 {field} 값이 잘못되었습니다: {value!r}")
    return value


def _parse_amount(record: dict[str, Any], field: str) -> Decimal:
    value = record.get(field)
    if isinstance(value, bool) or value is None:
        raise SnapshotFormatError(f"'{record.get('name')}'의 {field} 필드가 없습니다")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise SnapshotFormatError(f"'{record.get('name')}'의 {field} 값이 잘못되었습니다: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise SnapshotFormatError(f"'{record.get('name')}'의 {field} 값이 잘못되었습니다: {value!r}")
    return amount


# =========================================================================
# 저장소
# =========================================================================


class LedgerStore:
    """Ledger 스냅샷 저장소

    Args:
        db: SQLiteAdapter 인스턴스 (연결된 상태)
        seed_roster: 스냅샷이 없을 때 사용할 참가자 명단
        ratio_policy: 공정성 비율 계산 방식

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        store = LedgerStore(db, seed_roster=["A", "B"])
        ledger = await store.load()

        ledger.get("A").attendance_count += 1
        ledger.recompute_all()
        await store.save(ledger)
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        seed_roster: Iterable[str],
        ratio_policy: RatioPolicy = RatioPolicy.PER_ATTENDANCE,
        snapshot_key: str = LedgerSchema.SNAPSHOT_KEY,
    ):
        self.db = db
        self.seed_roster = tuple(seed_roster)
        self.ratio_policy = ratio_policy
        self.snapshot_key = snapshot_key
        self._write_lock = asyncio.Lock()
        self._unread_snapshot = False

    def seed_ledger(self) -> Ledger:
        """기본 명단으로 Ledger 생성 (모든 필드 0)"""
        return Ledger.from_roster(self.seed_roster, self.ratio_policy)

    async def load(self) -> Ledger:
        """스냅샷 로드

        Returns:
            Ledger (항상 유효한 상태)
        """
        if not self.db.is_connected:
            logger.error("DB 연결 없음, 기본 명단으로 시작 (저장되지 않음)")
            return self.seed_ledger()

        try:
            await init_schema(self.db)
            raw_json = await self._read_raw()
        except aiosqlite.Error as e:
            # 기존 스냅샷은 다음 저장 때 백업 후 덮어씀
            logger.error(f"스냅샷 조회 실패, 기본 명단으로 시작: {e}")
            self._unread_snapshot = True
            return self.seed_ledger()

        if raw_json is None:
            logger.info("저장된 스냅샷 없음, 기본 명단으로 초기화")
            return await self._load_seed()

        try:
            document, migrated = migrate(json.loads(raw_json))
            ledger = document_to_ledger(document, self.ratio_policy)
        except (json.JSONDecodeError, SnapshotFormatError) as e:
            logger.error(f"스냅샷을 읽을 수 없음, 기본 명단으로 복구: {e}")
            await self._backup_raw(raw_json)
            return await self._load_seed()

        if migrated:
            await self.save(ledger, updated_by="store:migration")
            logger.info(f"스냅샷 v{LedgerSchema.CURRENT_VERSION}로 마이그레이션 후 저장")

        logger.info(f"Ledger 로드 완료: 참가자 {len(ledger)}명")
        return ledger

    async def save(self, ledger: Ledger, updated_by: str = "engine") -> bool:
        """스냅샷 저장 (UPSERT)

        Args:
            ledger: 저장할 Ledger
            updated_by: 업데이트 주체

        Returns:
            성공 여부
        """
        now = datetime.now(timezone.utc).isoformat()
        value_json = json.dumps(ledger_to_document(ledger), ensure_ascii=False)

        async with self._write_lock:
            try:
                if self._unread_snapshot:
                    await self._backup_unread()
                revision = await self.db.upsert_snapshot(
                    self.snapshot_key,
                    value_json,
                    updated_by=updated_by,
                    updated_at=now,
                )
            except Exception as e:
                logger.error(f"Ledger 저장 실패 (메모리 상태 유지): {e}")
                return False

        logger.debug(f"Ledger 저장 완료: revision={revision} by {updated_by}")
        return True

    async def get_revision(self) -> int | None:
        """스냅샷 revision 조회 (저장된 적 없으면 None)"""
        row = await self.db.read_snapshot(self.snapshot_key)
        return row.revision if row else None

    async def list_backups(self) -> list[str]:
        """손상 스냅샷 백업 키 목록 (오래된 순)"""
        return await self.db.list_snapshot_keys(f"{self.snapshot_key}{BACKUP_INFIX}")

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _read_raw(self) -> str | None:
        row = await self.db.read_snapshot(self.snapshot_key)
        return row.value_json if row else None

    async def _load_seed(self) -> Ledger:
        ledger = self.seed_ledger()
        await self.save(ledger, updated_by="store:seed")
        return ledger

    def _backup_key(self) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        return f"{self.snapshot_key}{BACKUP_INFIX}{stamp}"

    async def _backup_unread(self) -> None:
        """로드 때 조회하지 못한 스냅샷을 덮어쓰기 전에 보관

        실패하면 예외를 그대로 올려 덮어쓰기를 막는다.
        """
        row = await self.db.read_snapshot(self.snapshot_key)
        if row is not None:
            backup_key = self._backup_key()
            await self.db.insert_snapshot(backup_key, row.value_json, updated_by="store:backup")
            logger.warning(f"덮어쓰기 전 기존 스냅샷 백업: {backup_key}")
        self._unread_snapshot = False

    async def _backup_raw(self, raw_json: str) -> None:
        """읽을 수 없는 스냅샷을 별도 키로 보관"""
        backup_key = self._backup_key()
        try:
            await self.db.insert_snapshot(backup_key, raw_json, updated_by="store:backup")
        except Exception as e:
            logger.error(f"스냅샷 백업 실패: {e}")
            return
        logger.warning(f"읽을 수 없는 스냅샷 백업: {backup_key}")
