"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액/비율은 정밀도 유지를 위해 문자열로 반환.
"""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    ready: bool = Field(..., description="Ledger 로드 완료 여부")
    participants: int = Field(..., description="참가자 수")
    ratio_policy: str = Field(..., description="공정성 비율 계산 방식")
    version: str = Field(..., description="앱 버전")


class ParticipantResponse(BaseModel):
    """참가자 응답 (순번 목록 항목)"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="참가자 이름")
    amount: str = Field(..., description="누적 결제 금액")
    count: int = Field(..., description="결제 횟수")
    attendance_count: int = Field(..., alias="attendanceCount", description="출석 횟수")
    ratio: str = Field(..., description="공정성 비율 (낮을수록 먼저 결제)")


class PaymentSummaryResponse(BaseModel):
    """결제 요약"""

    payers: list[str] = Field(..., description="결제자")
    amount: str = Field(..., description="결제 금액")
    next_up: list[str] = Field(..., description="다음 결제 차례")


class RotationResponse(BaseModel):
    """변경 연산 응답"""

    participants: list[ParticipantResponse] = Field(..., description="정렬된 참가자 목록")
    warnings: list[str] = Field(default_factory=list, description="경고 (저장 실패 등)")
    persisted: bool = Field(..., description="저장 성공 여부")
    payment: PaymentSummaryResponse | None = Field(default=None, description="결제 요약")
    notification_scheduled: bool = Field(default=False, description="알림 예약 여부")


class NotifyResponse(BaseModel):
    """다음 차례 알림 응답"""

    scheduled: bool = Field(..., description="알림 예약 여부 (알림 미설정 시 False)")
    next_up: list[str] = Field(..., description="다음 결제 차례")
