"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.notification_service import NotificationDispatcher
from web.services.rotation_service import RotationService

__all__ = [
    "NotificationDispatcher",
    "RotationService",
]
