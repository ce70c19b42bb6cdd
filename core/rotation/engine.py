"""
RotationEngine - 결제 순번 엔진

메모리 상의 Ledger를 소유하고 모든 변경 연산을 제공.
변경 연산은 asyncio.Lock으로 직렬화되어 (검증 → 변경 → 저장) 단위로 실행됨.
따라서 N번째 저장 스냅샷은 항상 1..N번째 연산을 정확히 반영.

사용 예시:
```python
engine = RotationEngine(store)
await engine.start()

result = await engine.record_payment(
    total_amount=Decimal("150"),
    attendees=["A", "B", "C"],
    payers=["A", "B"],
)
result.participants  # 다음 결제 순서로 정렬된 목록
result.payment.next_up  # 다음 차례 2명
```
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from core.constants import LedgerSchema
from core.rotation.errors import (
    DuplicateNameError,
    EmptyAttendanceError,
    InsufficientParticipantsError,
    InvalidAmountError,
    InvalidCorrectionError,
    InvalidPayerSelectionError,
    NotInitializedError,
)
from core.rotation.models import Ledger, Participant, PaymentSummary, RotationResult
from core.rotation.store import LedgerStore

logger = logging.getLogger(__name__)

PERSIST_FAILED_WARNING = "변경 사항을 저장하지 못했습니다. 메모리 상태는 유지됩니다."


def _to_decimal(value: Any) -> Decimal | None:
    """숫자 입력을 Decimal로 변환 (bool/None/변환 불가는 None)"""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _to_count(value: Any) -> int | None:
    """정수 입력 변환 (4.0 같은 정수값 실수 허용)"""
    number = _to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


class RotationEngine:
    """결제 순번 엔진

    Args:
        store: LedgerStore 인스턴스

    생명주기: start() → (연산) → stop()
    start() 완료 전에는 모든 연산이 NotInitializedError.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self._ledger: Ledger | None = None
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        """Ledger 로드 완료 여부"""
        return self._ledger is not None

    async def start(self) -> tuple[Participant, ...]:
        """Ledger 로드

        Returns:
            정렬된 참가자 목록
        """
        async with self._lock:
            self._ledger = await self.store.load()
            logger.info(f"RotationEngine 시작: 참가자 {len(self._ledger)}명")
            return self._ledger.ranked()

    async def stop(self) -> None:
        """진행 중인 변경이 끝날 때까지 대기 후 종료"""
        async with self._lock:
            self._ledger = None
            logger.info("RotationEngine 종료")

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def rank(self) -> tuple[Participant, ...]:
        """fairness_ratio 오름차순 참가자 목록 (맨 앞이 다음 결제자)"""
        return self._require_ledger().ranked()

    def next_up(self, count: int = LedgerSchema.PAYERS_PER_SESSION) -> tuple[str, ...]:
        """다음 결제 차례 이름"""
        return tuple(p.name for p in self.rank()[:count])

    def _require_ledger(self) -> Ledger:
        if self._ledger is None:
            raise NotInitializedError()
        return self._ledger

    # -------------------------------------------------------------------------
    # 변경 연산
    # -------------------------------------------------------------------------

    async def record_payment(
        self,
        total_amount: Any,
        attendees: Iterable[str],
        payers: Iterable[str],
    ) -> RotationResult:
        """결제 기록

        지정된 2명이 금액을 반씩 부담하고, 출석자의 출석 횟수를 1씩 증가.
        결제자는 순번(rank)과 무관하게 호출자가 지정.

        Args:
            total_amount: 총 결제 금액 (유한한 양수)
            attendees: 출석자 이름 (알 수 없는 이름은 경고 후 무시)
            payers: 결제자 이름 (서로 다른 2명)

        Returns:
            RotationResult (payment에 알림용 요약 포함)

        Raises:
            InvalidAmountError, EmptyAttendanceError, InvalidPayerSelectionError,
            InsufficientParticipantsError, NotInitializedError
        """
        async with self._lock:
            ledger = self._require_ledger()

            amount = _to_decimal(total_amount)
            if amount is None or amount <= 0:
                raise InvalidAmountError(f"결제 금액은 유한한 양수여야 합니다: {total_amount!r}")

            attendee_names = list(dict.fromkeys(attendees))
            if not attendee_names:
                raise EmptyAttendanceError("출석자를 한 명 이상 선택해야 합니다")

            payer_names = list(payers)
            required = LedgerSchema.PAYERS_PER_SESSION
            if len(payer_names) != required or len(set(payer_names)) != required:
                raise InvalidPayerSelectionError(
                    f"결제자는 서로 다른 {required}명이어야 합니다 (선택: {len(payer_names)}명)"
                )

            if len(ledger) < required:
                raise InsufficientParticipantsError(
                    f"참가자가 {required}명 이상이어야 합니다 (현재: {len(ledger)}명)"
                )

            unknown_payers = [name for name in payer_names if name not in ledger]
            if unknown_payers:
                raise InvalidPayerSelectionError(f"알 수 없는 결제자: {unknown_payers}")

            # 검증 완료 - 변경 시작
            share = amount / required
            for name in payer_names:
                payer = ledger.get(name)
                payer.payment_count += 1
                payer.total_paid += share

            warnings: list[str] = []
            for name in attendee_names:
                if name in ledger:
                    ledger.get(name).attendance_count += 1
                else:
                    logger.warning(f"알 수 없는 출석자 무시: {name!r}")
                    warnings.append(f"알 수 없는 출석자를 무시했습니다: '{name}'")

            ledger.recompute_all()

            logger.info(
                f"결제 기록: {amount} by {payer_names}, 출석 {len(attendee_names) - len(warnings)}명"
            )

            result = await self._persist(ledger, warnings, updated_by="engine:payment")
            payment = PaymentSummary(
                payers=tuple(payer_names),
                amount=amount,
                next_up=tuple(p.name for p in result.participants[:required]),
            )
            return RotationResult(
                participants=result.participants,
                warnings=result.warnings,
                persisted=result.persisted,
                payment=payment,
            )

    async def apply_manual_correction(
        self,
        name: str,
        amount: Any,
        payment_count: Any,
        attendance_count: Any,
    ) -> RotationResult:
        """관리자 수동 보정

        세 입력 필드를 한 번에 덮어쓰고 비율을 재계산.
        입력 실수를 바로잡는 유일한 경로.

        Raises:
            InvalidCorrectionError: 값 누락, 음수, 정수가 아닌 횟수
            ParticipantNotFoundError: 이름이 없는 경우
        """
        async with self._lock:
            ledger = self._require_ledger()

            new_amount = _to_decimal(amount)
            new_payment_count = _to_count(payment_count)
            new_attendance_count = _to_count(attendance_count)

            if new_amount is None or new_amount < 0:
                raise InvalidCorrectionError(f"금액은 0 이상의 숫자여야 합니다: {amount!r}")
            if new_payment_count is None or new_payment_count < 0:
                raise InvalidCorrectionError(f"결제 횟수는 0 이상의 정수여야 합니다: {payment_count!r}")
            if new_attendance_count is None or new_attendance_count < 0:
                raise InvalidCorrectionError(f"출석 횟수는 0 이상의 정수여야 합니다: {attendance_count!r}")

            participant = ledger.get(name)
            participant.total_paid = new_amount
            participant.payment_count = new_payment_count
            participant.attendance_count = new_attendance_count
            participant.recompute(ledger.ratio_policy)

            logger.info(
                f"수동 보정: {name!r} amount={new_amount}, "
                f"count={new_payment_count}, attendance={new_attendance_count}"
            )

            return await self._persist(ledger, [], updated_by="engine:correction")

    async def add_participant(self, name: str) -> RotationResult:
        """참가자 추가 (모든 필드 0, 이름 정규화 없음)

        Raises:
            DuplicateNameError: 이름이 비었거나 이미 존재
        """
        async with self._lock:
            ledger = self._require_ledger()

            if not isinstance(name, str) or not name:
                raise DuplicateNameError("참가자 이름이 비어 있습니다")

            ledger.add(Participant(name=name))
            logger.info(f"참가자 추가: {name!r}")

            return await self._persist(ledger, [], updated_by="engine:add")

    async def remove_participant(self, name: str) -> RotationResult:
        """참가자 삭제 (다른 참가자 통계는 변경하지 않음)

        Raises:
            ParticipantNotFoundError: 이름이 없는 경우
        """
        async with self._lock:
            ledger = self._require_ledger()

            ledger.remove(name)
            logger.info(f"참가자 삭제: {name!r}")

            return await self._persist(ledger, [], updated_by="engine:remove")

    async def _persist(
        self,
        ledger: Ledger,
        warnings: list[str],
        updated_by: str,
    ) -> RotationResult:
        """저장 후 결과 생성 (저장 실패는 경고로 전달)"""
        persisted = await self.store.save(ledger, updated_by=updated_by)
        if not persisted:
            logger.warning(f"Ledger 저장 실패 ({updated_by}), 메모리 상태로 계속 진행")
            warnings = [*warnings, PERSIST_FAILED_WARNING]

        return RotationResult(
            participants=ledger.ranked(),
            warnings=tuple(warnings),
            persisted=persisted,
        )
