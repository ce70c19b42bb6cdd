"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
필드명은 프론트엔드(JSON)와 동일하게 유지 (customPayers, attendanceCount).
값의 범위 검증은 RotationEngine에서 수행.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentRequest(BaseModel):
    """결제 기록 요청"""

    amount: Decimal = Field(..., description="총 결제 금액")
    attendees: list[str] = Field(..., description="출석자 이름 목록")
    custom_payers: list[str] = Field(
        ...,
        alias="customPayers",
        description="결제자 이름 (정확히 2명)",
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "amount": 150,
                    "attendees": ["Vasu and Naman", "Tapish and Shashank", "Ashwin and Rohit"],
                    "customPayers": ["Vasu and Naman", "Tapish and Shashank"],
                }
            ]
        },
    }


class CorrectionRequest(BaseModel):
    """수동 보정 요청"""

    name: str = Field(..., description="참가자 이름")
    amount: Decimal = Field(..., description="누적 결제 금액")
    count: Decimal = Field(..., description="결제 횟수 (정수)")
    attendance_count: Decimal = Field(
        ...,
        alias="attendanceCount",
        description="출석 횟수 (정수)",
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {"name": "Vasu and Naman", "amount": 200, "count": 4, "attendanceCount": 8}
            ]
        },
    }


class ParticipantCreateRequest(BaseModel):
    """참가자 추가 요청"""

    name: str = Field(..., description="참가자 이름 (정규화하지 않음)")
