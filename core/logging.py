"""
로깅 설정

프로세스 시작 시 한 번 호출하여 루트 로거에 핸들러를 붙인다.
- 콘솔: stdout
- 파일: <log_dir>/<process>.log, 자정마다 교체 (backup_count일치 보관)

사용법:
    from core.logging import setup_logging
    setup_logging("web", settings.config.log)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config.loader import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# WARNING 이상만 남길 라이브러리 로거
QUIET_LOGGERS = (
    "aiosqlite",        # 쿼리마다 executing/completed
    "httpcore",
    "httpx",            # Slack webhook 요청마다 INFO
    "asyncio",
    "uvicorn.access",   # 요청별 access 로그
)


def get_log_file_path(process_name: str, log_dir: Path) -> Path:
    """프로세스 로그 파일 경로"""
    return log_dir / f"{process_name}.log"


def _daily_file_handler(log_file: Path, config: LoggingConfig) -> TimedRotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"  # web.log.2026-10-19
    handler.setLevel(config.file_level)
    return handler


def setup_logging(process_name: str, config: LoggingConfig | None = None) -> logging.Logger:
    """루트 로거 초기화

    기존 루트 핸들러는 닫고 교체한다 (여러 번 호출해도 중복 출력 없음).

    Args:
        process_name: 프로세스 이름 (로그 파일명)
        config: 로깅 설정 (None이면 기본값)

    Returns:
        루트 Logger
    """
    config = config or LoggingConfig()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(config.console_level)
    root.addHandler(console)

    log_file = None
    if config.file_enabled:
        log_file = get_log_file_path(process_name, config.log_dir)
        root.addHandler(_daily_file_handler(log_file, config))

    for handler in root.handlers:
        handler.setFormatter(formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_file is None:
        root.info(f"로깅 초기화: {process_name} (콘솔 {config.console_level}, 파일 비활성)")
    else:
        root.info(
            f"로깅 초기화: {process_name} "
            f"(콘솔 {config.console_level}, 파일 {log_file} {config.file_level})"
        )

    return root
