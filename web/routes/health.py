"""
헬스 체크 엔드포인트

GET /health - Ledger 로드 여부와 현재 설정 확인
"""

from fastapi import APIRouter, Depends

from core.config.loader import AppConfig
from core.constants import Defaults
from core.rotation.engine import RotationEngine
from web.dependencies import get_app_config, get_engine
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    engine: RotationEngine = Depends(get_engine),
    config: AppConfig = Depends(get_app_config),
) -> HealthResponse:
    """서버 상태 확인"""
    ready = engine.is_ready

    return HealthResponse(
        status="ok" if ready else "starting",
        ready=ready,
        participants=len(engine.rank()) if ready else 0,
        ratio_policy=config.ratio_policy.value,
        version=Defaults.APP_VERSION,
    )
