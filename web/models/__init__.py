"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    CorrectionRequest,
    ParticipantCreateRequest,
    PaymentRequest,
)
from web.models.responses import (
    HealthResponse,
    NotifyResponse,
    ParticipantResponse,
    PaymentSummaryResponse,
    RotationResponse,
)

__all__ = [
    # Requests
    "PaymentRequest",
    "CorrectionRequest",
    "ParticipantCreateRequest",
    # Responses
    "HealthResponse",
    "NotifyResponse",
    "ParticipantResponse",
    "PaymentSummaryResponse",
    "RotationResponse",
]
