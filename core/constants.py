"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    APP_NAME: str = "ChaiiLedger"
    APP_VERSION: str = "1.0.0"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 3001

    RATIO_POLICY: str = "per_attendance"

    NOTIFIER_USERNAME: str = "ChaiiLedger"
    NOTIFIER_TIMEOUT_SEC: float = 10.0

    # 일별 로그 파일 보관 일수
    LOG_BACKUP_COUNT: int = 14

    # 최초 기동 시 사용하는 기본 참가자 명단
    SEED_ROSTER: tuple[str, ...] = (
        "Pradeep and Rohan Dayal",
        "Tapish and Shashank",
        "Vasu and Naman",
        "Abhilash And saruav",
        "Sarthak and Devansh",
        "Ashwin and Rohit",
    )


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "chaii_ledger.db"


class LedgerSchema:
    """스냅샷 스키마 상수"""

    # 현재 스냅샷 스키마 버전 (v2: attendanceCount 추가)
    CURRENT_VERSION: int = 2

    # ledger_snapshot 테이블의 단일 행 키
    SNAPSHOT_KEY: str = "ledger"

    # 한 번의 결제를 나눠 내는 인원 수
    PAYERS_PER_SESSION: int = 2
