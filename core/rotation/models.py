"""
로테이션 Ledger 데이터 모델

금액/비율은 반드시 Decimal 타입 사용.
fairness_ratio는 입력 필드로부터 항상 재계산되며 직접 설정하지 않음.
"""

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Iterator

from core.rotation.errors import DuplicateNameError, ParticipantNotFoundError
from core.types import RatioPolicy

ZERO = Decimal("0")


def compute_fairness_ratio(
    total_paid: Decimal,
    attendance_count: int,
    payment_count: int,
    policy: RatioPolicy,
) -> Decimal:
    """공정성 비율 계산

    출석 0회면 0. 낮을수록 먼저 결제할 차례.

    Args:
        total_paid: 누적 결제 금액
        attendance_count: 출석 횟수
        payment_count: 결제 횟수
        policy: 계산 방식

    Returns:
        공정성 비율
    """
    if attendance_count <= 0:
        return ZERO

    ratio = total_paid / Decimal(attendance_count)
    if policy == RatioPolicy.WEIGHTED_BY_PAYMENTS:
        ratio *= payment_count
    return ratio


@dataclass
class Participant:
    """로테이션 참가자

    name이 기본 키 (대소문자/공백 구분, 정규화하지 않음)
    """

    name: str
    payment_count: int = 0
    total_paid: Decimal = ZERO
    attendance_count: int = 0
    fairness_ratio: Decimal = field(default=ZERO, init=False)

    def recompute(self, policy: RatioPolicy) -> None:
        """입력 필드로부터 fairness_ratio 재계산"""
        self.fairness_ratio = compute_fairness_ratio(
            self.total_paid,
            self.attendance_count,
            self.payment_count,
            policy,
        )

    def copy(self) -> "Participant":
        clone = dataclasses.replace(self)
        clone.fairness_ratio = self.fairness_ratio
        return clone


class Ledger:
    """전체 참가자 상태

    삽입 순서를 유지하는 이름 → Participant 컬렉션.
    정렬(rank)은 항상 복사본에서 수행하며 저장 순서를 바꾸지 않음.
    """

    def __init__(
        self,
        participants: Iterable[Participant] = (),
        ratio_policy: RatioPolicy = RatioPolicy.PER_ATTENDANCE,
    ):
        self.ratio_policy = ratio_policy
        self._participants: dict[str, Participant] = {}
        for participant in participants:
            self.add(participant)

    @classmethod
    def from_roster(
        cls,
        names: Iterable[str],
        ratio_policy: RatioPolicy = RatioPolicy.PER_ATTENDANCE,
    ) -> "Ledger":
        """이름 목록으로 초기 Ledger 생성 (모든 필드 0)"""
        return cls((Participant(name=name) for name in names), ratio_policy)

    # -------------------------------------------------------------------------
    # 컬렉션
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants.values())

    def __contains__(self, name: object) -> bool:
        return name in self._participants

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return (
            self.ratio_policy == other.ratio_policy
            and list(self._participants.values()) == list(other._participants.values())
        )

    def __repr__(self) -> str:
        return f"Ledger(participants={len(self)}, ratio_policy={self.ratio_policy.value})"

    @property
    def names(self) -> list[str]:
        """삽입 순서의 이름 목록"""
        return list(self._participants)

    def get(self, name: str) -> Participant:
        """참가자 조회

        Raises:
            ParticipantNotFoundError: 이름이 없는 경우
        """
        try:
            return self._participants[name]
        except KeyError:
            raise ParticipantNotFoundError(name) from None

    # -------------------------------------------------------------------------
    # 변경
    # -------------------------------------------------------------------------

    def add(self, participant: Participant) -> None:
        """참가자 추가 (비율 즉시 계산)

        Raises:
            DuplicateNameError: 이름이 비었거나 이미 존재하는 경우
        """
        if not isinstance(participant.name, str) or not participant.name:
            raise DuplicateNameError("참가자 이름이 비어 있습니다")
        if participant.name in self._participants:
            raise DuplicateNameError(f"이미 존재하는 이름입니다: '{participant.name}'")

        participant.recompute(self.ratio_policy)
        self._participants[participant.name] = participant

    def remove(self, name: str) -> Participant:
        """참가자 삭제

        Raises:
            ParticipantNotFoundError: 이름이 없는 경우
        """
        participant = self.get(name)
        del self._participants[name]
        return participant

    def recompute_all(self) -> None:
        """모든 참가자의 비율 재계산"""
        for participant in self._participants.values():
            participant.recompute(self.ratio_policy)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def ranked(self) -> tuple[Participant, ...]:
        """fairness_ratio 오름차순 정렬된 복사본

        동일 비율은 삽입 순서 유지 (안정 정렬).
        """
        return tuple(
            participant.copy()
            for participant in sorted(
                self._participants.values(),
                key=lambda p: p.fairness_ratio,
            )
        )

    def copy(self) -> "Ledger":
        return Ledger((p.copy() for p in self), self.ratio_policy)


@dataclass(frozen=True)
class PaymentSummary:
    """결제 알림용 요약

    알림 서비스가 메시지를 구성할 때 사용.
    """

    payers: tuple[str, ...]
    amount: Decimal
    next_up: tuple[str, ...]


@dataclass(frozen=True)
class RotationResult:
    """변경 연산 결과

    participants: 변경 후 정렬된 참가자 목록
    warnings: 치명적이지 않은 경고 (알 수 없는 출석자, 저장 실패 등)
    persisted: 저장 성공 여부
    payment: record_payment 결과일 때만 설정
    """

    participants: tuple[Participant, ...]
    warnings: tuple[str, ...] = ()
    persisted: bool = True
    payment: PaymentSummary | None = None
