"""
스냅샷 스키마 마이그레이션

load() 시 한 번만 실행되는 버전별 마이그레이션 체인.

스키마 버전:
- v0: 이름 목록 (초기 순번 큐) ["A", "B", ...]
- v1: 버전 정보 없는 참가자 목록 [{"name", "amount", "count"}, ...]
      (amount/count 대신 totalPaid/paymentCount를 쓴 경우도 있음)
- v2: {"version": 2, "participants": [{"name", "paymentCount", "totalPaid",
      "attendanceCount", "fairnessRatio"}, ...]}
"""

import logging
from typing import Any, Callable

from core.constants import LedgerSchema

logger = logging.getLogger(__name__)


class SnapshotFormatError(Exception):
    """스냅샷 형식 오류 (읽을 수 없는 문서)"""

    pass


Document = dict[str, Any]


def detect_version(raw: Any) -> int:
    """원본 문서의 스키마 버전 판별

    Raises:
        SnapshotFormatError: 알 수 없는 형식
    """
    if isinstance(raw, list):
        if all(isinstance(item, str) for item in raw):
            return 0
        if all(isinstance(item, dict) for item in raw):
            return 1
        raise SnapshotFormatError("목록 스냅샷의 항목 형식이 섞여 있습니다")

    if isinstance(raw, dict):
        version = raw.get("version")
        if version is None:
            if isinstance(raw.get("participants"), list):
                return 1
            raise SnapshotFormatError("스냅샷에 version/participants 필드가 없습니다")
        if isinstance(version, bool) or not isinstance(version, int):
            raise SnapshotFormatError(f"잘못된 스냅샷 버전: {version!r}")
        return version

    raise SnapshotFormatError(f"지원하지 않는 스냅샷 타입: {type(raw).__name__}")


def _v0_to_v1(raw: Any) -> Document:
    """이름 목록 → 참가자 목록 (모든 값 0)"""
    return {
        "version": 1,
        "participants": [{"name": name, "amount": 0, "count": 0} for name in raw],
    }


def _v1_to_v2(raw: Any) -> Document:
    """참가자 목록 → v2 문서

    - amount/count 필드명을 totalPaid/paymentCount로 변경
    - attendanceCount가 없으면 paymentCount로 채움
    """
    records = raw if isinstance(raw, list) else raw.get("participants", [])

    participants = []
    for record in records:
        if not isinstance(record, dict):
            raise SnapshotFormatError("참가자 레코드가 객체가 아닙니다")

        migrated = dict(record)
        if "totalPaid" not in migrated and "amount" in migrated:
            migrated["totalPaid"] = migrated.pop("amount")
        if "paymentCount" not in migrated and "count" in migrated:
            migrated["paymentCount"] = migrated.pop("count")
        if "attendanceCount" not in migrated and "paymentCount" in migrated:
            migrated["attendanceCount"] = migrated["paymentCount"]
        participants.append(migrated)

    return {"version": 2, "participants": participants}


# 버전 N 문서를 N+1로 올리는 함수
MIGRATIONS: dict[int, Callable[[Any], Document]] = {
    0: _v0_to_v1,
    1: _v1_to_v2,
}


def migrate(raw: Any) -> tuple[Document, bool]:
    """현재 스키마 버전까지 마이그레이션

    Args:
        raw: JSON 디코딩된 원본 문서

    Returns:
        (현재 버전 문서, 마이그레이션 수행 여부)

    Raises:
        SnapshotFormatError: 알 수 없는 형식이거나 더 최신 버전인 경우
    """
    version = detect_version(raw)

    if version > LedgerSchema.CURRENT_VERSION:
        raise SnapshotFormatError(
            f"지원하지 않는 스냅샷 버전입니다: v{version} "
            f"(현재 v{LedgerSchema.CURRENT_VERSION})"
        )
    if version < 0:
        raise SnapshotFormatError(f"잘못된 스냅샷 버전: v{version}")

    document = raw
    start_version = version
    while version < LedgerSchema.CURRENT_VERSION:
        document = MIGRATIONS[version](document)
        version += 1
        logger.info(f"스냅샷 마이그레이션: v{version - 1} → v{version}")

    if not isinstance(document, dict) or not isinstance(document.get("participants"), list):
        raise SnapshotFormatError("스냅샷에 participants 목록이 없습니다")

    return document, version != start_version
