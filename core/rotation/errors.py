"""
로테이션 예외 계층

모든 예외는 변경 전에 발생하며 Ledger는 그대로 유지됨.
- ValidationError: 호출자 입력 오류 (400)
- PreconditionError: 조회/전제 조건 실패 (404, 409)
- NotInitializedError: load 완료 전 호출 (503)

저장 실패는 예외가 아니라 RotationResult.warnings로 전달됨.
"""

from typing import Any


class RotationError(Exception):
    """로테이션 예외 기본 클래스"""

    code: str = "RotationError"
    http_status: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, Any]:
        """REST 응답 본문"""
        return {"error": self.code, "detail": self.message}


# =========================================================================
# 입력 검증 오류
# =========================================================================


class ValidationError(RotationError):
    """입력 검증 실패"""

    code = "ValidationError"


class InvalidAmountError(ValidationError):
    """결제 금액이 유한한 양수가 아님"""

    code = "InvalidAmount"


class EmptyAttendanceError(ValidationError):
    """출석자 목록이 비어 있음"""

    code = "EmptyAttendance"


class InvalidPayerSelectionError(ValidationError):
    """결제자가 서로 다른 2명이 아니거나 존재하지 않음"""

    code = "InvalidPayerSelection"


class InvalidCorrectionError(ValidationError):
    """수동 보정 값이 잘못됨"""

    code = "InvalidCorrection"


class DuplicateNameError(ValidationError):
    """이름이 비어 있거나 이미 존재함"""

    code = "DuplicateName"


# =========================================================================
# 전제 조건 오류
# =========================================================================


class PreconditionError(RotationError):
    """조회/전제 조건 실패"""

    code = "PreconditionError"


class ParticipantNotFoundError(PreconditionError):
    """참가자를 찾을 수 없음"""

    code = "ParticipantNotFound"
    http_status = 404

    def __init__(self, name: str):
        super().__init__(f"참가자를 찾을 수 없습니다: '{name}'")
        self.name = name


class InsufficientParticipantsError(PreconditionError):
    """참가자가 2명 미만"""

    code = "InsufficientParticipants"
    http_status = 409


class NotInitializedError(RotationError):
    """Ledger 로드 전 호출"""

    code = "NotInitialized"
    http_status = 503

    def __init__(self) -> None:
        super().__init__("Ledger가 아직 로드되지 않았습니다")
