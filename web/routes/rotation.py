"""
Rotation 라우트

순번 조회, 결제 기록, 수동 보정, 참가자 관리, 다음 차례 알림 API
"""

from fastapi import APIRouter, Depends, Path

from web.dependencies import get_rotation_service
from web.models.requests import (
    CorrectionRequest,
    ParticipantCreateRequest,
    PaymentRequest,
)
from web.models.responses import NotifyResponse, ParticipantResponse, RotationResponse
from web.services.rotation_service import RotationService

router = APIRouter(prefix="/api", tags=["Rotation"])


@router.get("/turn", response_model=list[ParticipantResponse])
async def get_turn(
    service: RotationService = Depends(get_rotation_service),
) -> list[ParticipantResponse]:
    """현재 순번 목록 (맨 앞이 다음 결제자)"""
    return service.get_turn()


@router.post("/pay", response_model=RotationResponse)
async def record_payment(
    request: PaymentRequest,
    service: RotationService = Depends(get_rotation_service),
) -> RotationResponse:
    """결제 기록

    지정된 2명이 금액을 반씩 부담하고 출석자의 출석 횟수를 증가.
    성공 시 결제 감사/다음 차례 알림을 백그라운드로 전송.
    """
    return await service.record_payment(request)


@router.post("/update", response_model=RotationResponse)
async def apply_correction(
    request: CorrectionRequest,
    service: RotationService = Depends(get_rotation_service),
) -> RotationResponse:
    """수동 보정 (금액, 결제 횟수, 출석 횟수를 한 번에 덮어씀)"""
    return await service.apply_correction(request)


@router.post("/participants", response_model=RotationResponse, status_code=201)
async def add_participant(
    request: ParticipantCreateRequest,
    service: RotationService = Depends(get_rotation_service),
) -> RotationResponse:
    """참가자 추가"""
    return await service.add_participant(request.name)


@router.delete("/participants/{name:path}", response_model=RotationResponse)
async def remove_participant(
    name: str = Path(..., description="참가자 이름"),
    service: RotationService = Depends(get_rotation_service),
) -> RotationResponse:
    """참가자 삭제 (이름에 "/" 포함 가능)"""
    return await service.remove_participant(name)


@router.post("/notify", response_model=NotifyResponse)
async def notify_next_turn(
    service: RotationService = Depends(get_rotation_service),
) -> NotifyResponse:
    """다음 차례 알림 전송 (백그라운드)"""
    return service.notify_next_turn()
