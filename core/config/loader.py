"""
설정 로더

settings.yaml 로드 및 검증
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import RatioPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifierConfig:
    """Webhook 알림 설정

    webhook_url이 비어 있으면 알림 비활성화
    """

    webhook_url: str
    username: str
    timeout: float

    @property
    def enabled(self) -> bool:
        return self.webhook_url.startswith("http")


@dataclass(frozen=True)
class LoggingConfig:
    """로깅 설정

    레벨은 logging 모듈 레벨 이름 (DEBUG, INFO, WARNING, ERROR)
    """

    console_level: str = "INFO"
    file_level: str = "INFO"
    log_dir: Path = Paths.LOGS_DIR
    backup_count: int = Defaults.LOG_BACKUP_COUNT
    file_enabled: bool = True


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    ratio_policy: RatioPolicy
    roster: tuple[str, ...]
    notifier: NotifierConfig
    web_host: str
    web_port: int
    log: LoggingConfig = field(default_factory=LoggingConfig)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def default_config() -> AppConfig:
    """settings.yaml이 없을 때 사용하는 기본 설정"""
    return AppConfig(
        db_path=Paths.LEDGER_DB,
        ratio_policy=RatioPolicy(Defaults.RATIO_POLICY),
        roster=Defaults.SEED_ROSTER,
        notifier=NotifierConfig(
            webhook_url="",
            username=Defaults.NOTIFIER_USERNAME,
            timeout=Defaults.NOTIFIER_TIMEOUT_SEC,
        ),
        web_host=Defaults.WEB_HOST,
        web_port=Defaults.WEB_PORT,
    )


def load_settings(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스. 파일이 없으면 기본 설정.

    Raises:
        SettingsLoadError: 파싱 실패 또는 값이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        logger.info(f"settings.yaml 없음, 기본 설정 사용: {path}")
        return default_config()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_config()

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml의 최상위는 매핑이어야 합니다")

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """YAML 딕셔너리를 AppConfig로 변환"""
    base = default_config()

    # ratio_policy 검증
    policy_str = data.get("ratio_policy", base.ratio_policy.value)
    try:
        ratio_policy = RatioPolicy(policy_str)
    except ValueError as e:
        valid = [p.value for p in RatioPolicy]
        raise SettingsLoadError(
            f"유효하지 않은 ratio_policy입니다: '{policy_str}'. 유효한 값: {valid}"
        ) from e

    # roster 검증 (문자열 목록, 중복 불가)
    roster_raw = data.get("roster", list(base.roster))
    if not isinstance(roster_raw, list) or not all(
        isinstance(name, str) and name for name in roster_raw
    ):
        raise SettingsLoadError("roster는 비어 있지 않은 문자열 목록이어야 합니다")
    if len(set(roster_raw)) != len(roster_raw):
        raise SettingsLoadError("roster에 중복된 이름이 있습니다")

    # db_path (상대 경로는 프로젝트 루트 기준)
    db_path = _parse_path(data, "db_path", base.db_path)
    if not db_path.is_absolute() and str(db_path) != ":memory:":
        db_path = PROJECT_ROOT / db_path

    notifier_data = _section(data, "notifier")
    web_data = _section(data, "web")

    try:
        notifier = NotifierConfig(
            webhook_url=str(notifier_data.get("webhook_url") or ""),
            username=str(notifier_data.get("username", base.notifier.username)),
            timeout=float(notifier_data.get("timeout", base.notifier.timeout)),
        )
        web_port = int(web_data.get("port", base.web_port))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"settings.yaml 값 형식 오류: {e}") from e

    return AppConfig(
        db_path=db_path,
        ratio_policy=ratio_policy,
        roster=tuple(roster_raw),
        notifier=notifier,
        web_host=str(web_data.get("host", base.web_host)),
        web_port=web_port,
        log=_parse_logging(_section(data, "logging")),
    )


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """하위 섹션 (없거나 null이면 빈 딕셔너리)"""
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"{key} 섹션은 매핑이어야 합니다: {section!r}")
    return section


def _parse_path(data: dict[str, Any], key: str, default: Path) -> Path:
    value = data.get(key, default)
    if not isinstance(value, (str, Path)) or not str(value):
        raise SettingsLoadError(f"{key}는 경로 문자열이어야 합니다: {value!r}")
    return Path(value)


def _parse_logging(data: dict[str, Any]) -> LoggingConfig:
    """logging 섹션 변환 (레벨 이름 검증)"""
    base = LoggingConfig()

    levels = {}
    for key in ("console_level", "file_level"):
        level = str(data.get(key, getattr(base, key))).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise SettingsLoadError(f"유효하지 않은 로그 레벨입니다: logging.{key}='{level}'")
        levels[key] = level

    log_dir = _parse_path(data, "dir", base.log_dir)
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir

    try:
        backup_count = int(data.get("backup_count", base.backup_count))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"logging.backup_count 형식 오류: {e}") from e

    # YAML 불리언만 허용 ("false" 문자열 불가)
    file_enabled = data.get("file_enabled", base.file_enabled)
    if not isinstance(file_enabled, bool):
        raise SettingsLoadError(f"logging.file_enabled는 true/false여야 합니다: {file_enabled!r}")

    return LoggingConfig(
        console_level=levels["console_level"],
        file_level=levels["file_level"],
        log_dir=log_dir,
        backup_count=backup_count,
        file_enabled=file_enabled,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_settings(settings_path)

    @property
    def config(self) -> AppConfig:
        """전체 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """Ledger DB 경로"""
        return self.config.db_path

    @property
    def ratio_policy(self) -> RatioPolicy:
        """공정성 비율 계산 방식"""
        return self.config.ratio_policy

    @property
    def roster(self) -> tuple[str, ...]:
        """기본 참가자 명단"""
        return self.config.roster

    @property
    def notifier(self) -> NotifierConfig:
        """알림 설정"""
        return self.config.notifier

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 싱글턴 인스턴스 반환"""
    return Settings(settings_path)
