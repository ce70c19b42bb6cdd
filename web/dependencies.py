"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
엔진/디스패처는 lifespan에서 생성되어 app.state에 보관됨 (전역 변수 없음).
"""

from fastapi import Request

from core.config.loader import AppConfig
from core.rotation.engine import RotationEngine
from web.services.notification_service import NotificationDispatcher
from web.services.rotation_service import RotationService


def get_app_config(request: Request) -> AppConfig:
    """애플리케이션 설정 반환"""
    return request.app.state.config


def get_engine(request: Request) -> RotationEngine:
    """RotationEngine 반환"""
    return request.app.state.engine


def get_dispatcher(request: Request) -> NotificationDispatcher:
    """알림 디스패처 반환"""
    return request.app.state.dispatcher


def get_rotation_service(request: Request) -> RotationService:
    """요청 단위 RotationService 생성"""
    return RotationService(get_engine(request), get_dispatcher(request))
