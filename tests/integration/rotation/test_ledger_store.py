"""LedgerStore 통합 테스트

실제 SQLite 파일을 사용한 스냅샷 저장/복원, 손상 복구, 마이그레이션 테스트
"""

import json
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.constants import LedgerSchema
from core.rotation.models import Ledger, Participant
from core.rotation.store import LedgerStore, document_to_ledger, ledger_to_document
from core.rotation.migrations import SnapshotFormatError
from core.types import RatioPolicy


ROSTER = ("A", "B", "C")


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> SQLiteAdapter:
    """테스트용 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db, seed_roster=ROSTER)


async def write_raw(db: SQLiteAdapter, value_json: str) -> None:
    """스냅샷 행 직접 기록"""
    await init_schema(db)
    await db.insert_snapshot(LedgerSchema.SNAPSHOT_KEY, value_json, updated_by="test")


async def read_document(db: SQLiteAdapter) -> dict:
    row = await db.read_snapshot(LedgerSchema.SNAPSHOT_KEY)
    return json.loads(row.value_json)


class TestSerialization:
    """ledger_to_document / document_to_ledger 테스트"""

    def test_decimal_as_string(self) -> None:
        """금액은 문자열로 저장"""
        ledger = Ledger(
            [Participant(name="A", payment_count=1, total_paid=Decimal("12.50"), attendance_count=2)]
        )

        document = ledger_to_document(ledger)

        assert document["version"] == LedgerSchema.CURRENT_VERSION
        assert document["participants"] == [
            {
                "name": "A",
                "paymentCount": 1,
                "totalPaid": "12.50",
                "attendanceCount": 2,
                "fairnessRatio": "6.25",
            }
        ]

    def test_cached_ratio_ignored(self) -> None:
        """저장된 fairnessRatio는 무시하고 재계산"""
        document = {
            "version": 2,
            "participants": [
                {
                    "name": "A",
                    "paymentCount": 1,
                    "totalPaid": "30",
                    "attendanceCount": 3,
                    "fairnessRatio": "999",
                }
            ],
        }

        ledger = document_to_ledger(document, RatioPolicy.PER_ATTENDANCE)

        assert ledger.get("A").fairness_ratio == Decimal("10")

    @pytest.mark.parametrize(
        "record",
        [
            {"name": "A", "paymentCount": 1, "totalPaid": "10"},
            {"name": "A", "paymentCount": -1, "totalPaid": "10", "attendanceCount": 1},
            {"name": "A", "paymentCount": 1, "totalPaid": "abc", "attendanceCount": 1},
            {"name": "A", "paymentCount": 1.5, "totalPaid": "10", "attendanceCount": 1},
            {"name": "", "paymentCount": 1, "totalPaid": "10", "attendanceCount": 1},
            {"paymentCount": 1, "totalPaid": "10", "attendanceCount": 1},
        ],
    )
    def test_invalid_record_raises(self, record: dict) -> None:
        with pytest.raises(SnapshotFormatError):
            document_to_ledger({"version": 2, "participants": [record]}, RatioPolicy.PER_ATTENDANCE)

    def test_duplicate_names_raise(self) -> None:
        record = {"name": "A", "paymentCount": 0, "totalPaid": "0", "attendanceCount": 0}

        with pytest.raises(SnapshotFormatError):
            document_to_ledger(
                {"version": 2, "participants": [record, dict(record)]},
                RatioPolicy.PER_ATTENDANCE,
            )


class TestLoadSave:
    """load() / save() 테스트"""

    @pytest.mark.asyncio
    async def test_first_load_seeds_and_persists(self, store: LedgerStore, db: SQLiteAdapter) -> None:
        """스냅샷이 없으면 기본 명단을 저장"""
        ledger = await store.load()

        assert ledger.names == list(ROSTER)
        assert await store.get_revision() == 1

        document = await read_document(db)
        assert [p["name"] for p in document["participants"]] == list(ROSTER)

    @pytest.mark.asyncio
    async def test_round_trip(self, store: LedgerStore) -> None:
        """저장 후 로드하면 동일"""
        ledger = await store.load()
        ledger.get("B").payment_count = 2
        ledger.get("B").total_paid = Decimal("123.45")
        ledger.get("B").attendance_count = 5
        ledger.recompute_all()

        assert await store.save(ledger) is True

        assert await store.load() == ledger

    @pytest.mark.asyncio
    async def test_survives_reconnect(self, tmp_path: Path) -> None:
        """프로세스 재시작 후 동일"""
        db_path = tmp_path / "restart.db"

        async with SQLiteAdapter(db_path) as db:
            store = LedgerStore(db, seed_roster=ROSTER)
            ledger = await store.load()
            ledger.get("A").attendance_count = 4
            ledger.recompute_all()
            await store.save(ledger)

        async with SQLiteAdapter(db_path) as db:
            reloaded = await LedgerStore(db, seed_roster=("X", "Y")).load()

        assert reloaded == ledger

    @pytest.mark.asyncio
    async def test_save_increments_revision(self, store: LedgerStore) -> None:
        ledger = await store.load()

        await store.save(ledger)
        await store.save(ledger)

        assert await store.get_revision() == 3

    @pytest.mark.asyncio
    async def test_save_failure_returns_false(self, db: SQLiteAdapter) -> None:
        """연결이 끊긴 상태에서 저장 실패"""
        store = LedgerStore(db, seed_roster=ROSTER)
        ledger = await store.load()
        await db.close()

        assert await store.save(ledger) is False

    @pytest.mark.asyncio
    async def test_ratio_policy_applied_on_load(self, db: SQLiteAdapter) -> None:
        """로드 시 설정된 정책으로 재계산"""
        await write_raw(
            db,
            json.dumps(
                {
                    "version": 2,
                    "participants": [
                        {"name": "A", "paymentCount": 2, "totalPaid": "40", "attendanceCount": 4},
                        {"name": "B", "paymentCount": 0, "totalPaid": "0", "attendanceCount": 0},
                    ],
                }
            ),
        )

        store = LedgerStore(db, seed_roster=ROSTER, ratio_policy=RatioPolicy.WEIGHTED_BY_PAYMENTS)
        ledger = await store.load()

        assert ledger.get("A").fairness_ratio == Decimal("20")


class TestRecovery:
    """손상된 스냅샷 복구 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value_json",
        [
            "{not json",
            json.dumps({"version": 99, "participants": []}),
            json.dumps({"version": 2, "participants": [{"name": "A"}]}),
            json.dumps(42),
        ],
    )
    async def test_corrupt_snapshot_backed_up_and_seeded(
        self, store: LedgerStore, db: SQLiteAdapter, value_json: str
    ) -> None:
        """읽을 수 없으면 백업 후 기본 명단으로 복구"""
        await write_raw(db, value_json)

        ledger = await store.load()

        assert ledger.names == list(ROSTER)

        backups = await store.list_backups()
        assert len(backups) == 1
        assert backups[0].startswith("ledger.corrupt.")
        assert (await db.read_snapshot(backups[0])).value_json == value_json

        document = await read_document(db)
        assert document["version"] == LedgerSchema.CURRENT_VERSION


class TestStorageUnavailable:
    """DB를 읽거나 쓸 수 없을 때"""

    @pytest.mark.asyncio
    async def test_read_error_keeps_stored_snapshot(self, store: LedgerStore, db: SQLiteAdapter) -> None:
        """조회 실패 시 기존 스냅샷을 덮어쓰지 않고, 다음 저장 때 백업"""
        ledger = await store.load()
        ledger.get("A").payment_count = 3
        assert await store.save(ledger) is True
        stored = (await db.read_snapshot(LedgerSchema.SNAPSHOT_KEY)).value_json

        restarted = LedgerStore(db, seed_roster=ROSTER)
        with patch.object(
            db, "read_snapshot", side_effect=aiosqlite.OperationalError("database is locked")
        ):
            seeded = await restarted.load()

        assert seeded.get("A").payment_count == 0
        assert (await db.read_snapshot(LedgerSchema.SNAPSHOT_KEY)).value_json == stored
        assert await restarted.list_backups() == []

        assert await restarted.save(seeded) is True

        backups = await restarted.list_backups()
        assert len(backups) == 1
        assert (await db.read_snapshot(backups[0])).value_json == stored
        assert (await read_document(db))["participants"][0]["paymentCount"] == 0

        # 백업은 한 번만
        assert await restarted.save(seeded) is True
        assert len(await restarted.list_backups()) == 1

    @pytest.mark.asyncio
    async def test_unconnected_db_uses_seed(self, tmp_path: Path) -> None:
        """연결되지 않은 DB: 기본 명단으로 시작, 저장은 실패"""
        store = LedgerStore(SQLiteAdapter(tmp_path / "never_opened.db"), seed_roster=ROSTER)

        ledger = await store.load()

        assert ledger.names == list(ROSTER)
        assert await store.save(ledger) is False


class TestMigration:
    """구 버전 스냅샷 마이그레이션 테스트"""

    @pytest.mark.asyncio
    async def test_v0_name_list(self, store: LedgerStore, db: SQLiteAdapter) -> None:
        """이름 목록 스냅샷"""
        await write_raw(db, json.dumps(["Q", "R"]))

        ledger = await store.load()

        assert ledger.names == ["Q", "R"]
        assert all(p.payment_count == 0 for p in ledger)

        document = await read_document(db)
        assert document["version"] == 2
        assert await store.get_revision() == 2

    @pytest.mark.asyncio
    async def test_v1_participant_list(self, store: LedgerStore, db: SQLiteAdapter) -> None:
        """amount/count 목록 스냅샷, attendanceCount는 count로 채움"""
        await write_raw(
            db,
            json.dumps(
                [
                    {"name": "Q", "amount": 150, "count": 3},
                    {"name": "R", "amount": 0, "count": 0},
                ]
            ),
        )

        ledger = await store.load()

        q = ledger.get("Q")
        assert q.total_paid == Decimal("150")
        assert q.payment_count == 3
        assert q.attendance_count == 3
        assert q.fairness_ratio == Decimal("50")

        document = await read_document(db)
        assert document["participants"][0]["attendanceCount"] == 3

    @pytest.mark.asyncio
    async def test_current_version_not_rewritten(self, store: LedgerStore, db: SQLiteAdapter) -> None:
        """현재 버전은 로드 시 다시 저장하지 않음"""
        await store.load()
        revision = await store.get_revision()

        await store.load()

        assert await store.get_revision() == revision
