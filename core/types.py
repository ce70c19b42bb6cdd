"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class RatioPolicy(str, Enum):
    """공정성 비율 계산 방식

    - PER_ATTENDANCE: total_paid / attendance_count
    - WEIGHTED_BY_PAYMENTS: (total_paid / attendance_count) * payment_count
    """

    PER_ATTENDANCE = "per_attendance"
    WEIGHTED_BY_PAYMENTS = "weighted_by_payments"


class NotifyLevel(str, Enum):
    """알림 레벨"""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
