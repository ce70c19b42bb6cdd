"""
Rotation 서비스

RotationEngine 호출 결과를 API 응답으로 변환하고
결제 후 알림을 예약.
"""

from core.rotation.engine import PERSIST_FAILED_WARNING, RotationEngine
from core.rotation.models import Participant, RotationResult
from web.models.requests import CorrectionRequest, PaymentRequest
from web.models.responses import (
    NotifyResponse,
    ParticipantResponse,
    PaymentSummaryResponse,
    RotationResponse,
)
from core.types import NotifyLevel
from web.services.notification_service import NotificationDispatcher


def to_participant_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        name=participant.name,
        amount=str(participant.total_paid),
        count=participant.payment_count,
        attendance_count=participant.attendance_count,
        ratio=str(participant.fairness_ratio),
    )


def to_rotation_response(
    result: RotationResult,
    notification_scheduled: bool = False,
) -> RotationResponse:
    payment = None
    if result.payment is not None:
        payment = PaymentSummaryResponse(
            payers=list(result.payment.payers),
            amount=str(result.payment.amount),
            next_up=list(result.payment.next_up),
        )

    return RotationResponse(
        participants=[to_participant_response(p) for p in result.participants],
        warnings=list(result.warnings),
        persisted=result.persisted,
        payment=payment,
        notification_scheduled=notification_scheduled,
    )


class RotationService:
    """Rotation 서비스

    Args:
        engine: RotationEngine (앱 수명 동안 단일 인스턴스)
        dispatcher: 알림 디스패처
    """

    def __init__(self, engine: RotationEngine, dispatcher: NotificationDispatcher):
        self.engine = engine
        self.dispatcher = dispatcher

    def get_turn(self) -> list[ParticipantResponse]:
        """현재 순번 목록"""
        return [to_participant_response(p) for p in self.engine.rank()]

    async def record_payment(self, request: PaymentRequest) -> RotationResponse:
        """결제 기록 후 알림 예약 (알림 결과와 무관하게 응답)"""
        result = await self.engine.record_payment(
            total_amount=request.amount,
            attendees=request.attendees,
            payers=request.custom_payers,
        )

        scheduled = False
        if result.payment is not None:
            scheduled = self.dispatcher.notify_payment(result.payment)

        return self._respond(result, "pay", notification_scheduled=scheduled)

    async def apply_correction(self, request: CorrectionRequest) -> RotationResponse:
        """수동 보정"""
        result = await self.engine.apply_manual_correction(
            name=request.name,
            amount=request.amount,
            payment_count=request.count,
            attendance_count=request.attendance_count,
        )
        return self._respond(result, "update")

    async def add_participant(self, name: str) -> RotationResponse:
        result = await self.engine.add_participant(name)
        return self._respond(result, "add_participant")

    async def remove_participant(self, name: str) -> RotationResponse:
        result = await self.engine.remove_participant(name)
        return self._respond(result, "remove_participant")

    def notify_next_turn(self) -> NotifyResponse:
        """다음 차례 알림 예약"""
        next_up = list(self.engine.next_up())
        scheduled = self.dispatcher.notify_next_turn(next_up)
        return NotifyResponse(scheduled=scheduled, next_up=next_up)

    def _respond(
        self,
        result: RotationResult,
        operation: str,
        notification_scheduled: bool = False,
    ) -> RotationResponse:
        """응답 변환 (저장 실패 시 WARNING 알림 예약)"""
        if not result.persisted:
            self.dispatcher.notify_alert(
                PERSIST_FAILED_WARNING,
                NotifyLevel.WARNING,
                extra={"operation": operation},
            )
        return to_rotation_response(result, notification_scheduled=notification_scheduled)
