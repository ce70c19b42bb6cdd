"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.

실행:
    uvicorn web.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

import aiosqlite
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import INotifier
from adapters.slack.notifier import SlackNotifier
from core.config.loader import AppConfig, get_settings
from core.constants import Defaults
from core.logging import setup_logging
from core.rotation.engine import RotationEngine
from core.rotation.store import LedgerStore
from core.types import NotifyLevel
from web.error_handlers import register_error_handlers
from web.routes import health, rotation
from web.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


def build_notifier(config: AppConfig) -> INotifier | None:
    """설정에 따라 Notifier 생성 (webhook_url 미설정 시 None)"""
    if not config.notifier.enabled:
        logger.warning("webhook_url이 설정되지 않음, 알림 비활성화")
        return None

    return SlackNotifier(
        webhook_url=config.notifier.webhook_url,
        username=config.notifier.username,
        timeout=config.notifier.timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    시작: DB 연결 (손상 파일은 옮기고 새로 생성) → LedgerStore → RotationEngine.start() → 알림 디스패처
    DB를 열 수 없으면 저장 없이 기본 명단으로 실행.
    종료: 남은 알림 전송 → 엔진 종료 → DB 연결 종료
    """
    config: AppConfig = app.state.config
    startup_alerts: list[tuple[NotifyLevel, str]] = []

    db = SQLiteAdapter(config.db_path)
    try:
        moved = await db.connect_or_recover()
    except (aiosqlite.Error, OSError) as e:
        logger.error(f"DB를 열 수 없음, 저장 없이 기본 명단으로 실행: {e}")
        await db.close()
        startup_alerts.append((NotifyLevel.ERROR, f"DB를 열 수 없어 저장 없이 실행 중입니다: {e}"))
    else:
        if moved is not None:
            startup_alerts.append(
                (NotifyLevel.WARNING, f"손상된 DB 파일을 {moved.name}(으)로 옮기고 새로 시작했습니다")
            )

    store = LedgerStore(
        db,
        seed_roster=config.roster,
        ratio_policy=config.ratio_policy,
    )
    engine = RotationEngine(store)
    await engine.start()

    notifier = app.state.notifier_override or build_notifier(config)
    dispatcher = NotificationDispatcher(notifier)
    for level, message in startup_alerts:
        dispatcher.notify_alert(message, level)

    app.state.engine = engine
    app.state.dispatcher = dispatcher

    logger.info(f"Web 시작 완료 (ratio_policy={config.ratio_policy.value})")

    try:
        yield
    finally:
        await dispatcher.close()
        await engine.stop()
        await db.close()
        logger.info("Web 종료 완료")


def create_app(
    config: AppConfig | None = None,
    notifier: INotifier | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        config: 애플리케이션 설정 (None이면 settings.yaml 로드)
        notifier: Notifier 주입 (테스트용, None이면 설정에 따라 생성)
        configure_logging: 콘솔/파일 로깅 설정 여부

    Returns:
        FastAPI 앱
    """
    config = config or get_settings().config
    if configure_logging:
        setup_logging("web", config.log)

    app = FastAPI(
        title="Chaii Ledger API",
        description="공정성 비율 기반 결제 순번 관리 API",
        version=Defaults.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.notifier_override = notifier

    # CORS 설정 (프론트엔드 별도 호스팅)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(rotation.router)

    return app
