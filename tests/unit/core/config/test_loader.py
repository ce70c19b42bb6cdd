"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 싱글턴 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    AppConfig,
    LoggingConfig,
    NotifierConfig,
    SettingsLoadError,
    Settings,
    default_config,
    get_settings,
    load_settings,
)
from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import RatioPolicy


class TestNotifierConfig:
    """NotifierConfig 테스트"""

    def test_enabled_with_http_url(self) -> None:
        """http URL이면 활성화"""
        config = NotifierConfig(webhook_url="https://hooks.slack.com/x", username="u", timeout=1.0)

        assert config.enabled is True

    def test_disabled_without_url(self) -> None:
        """URL이 없으면 비활성화"""
        config = NotifierConfig(webhook_url="", username="u", timeout=1.0)

        assert config.enabled is False

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = NotifierConfig(webhook_url="", username="u", timeout=1.0)

        with pytest.raises(AttributeError):
            config.webhook_url = "https://x"  # type: ignore


class TestLoadSettings:
    """load_settings() 테스트"""

    def test_missing_file_returns_defaults(self, temp_dir: Path) -> None:
        """파일이 없으면 기본 설정"""
        config = load_settings(temp_dir / "missing.yaml")

        assert config == default_config()
        assert config.db_path == Paths.LEDGER_DB
        assert config.roster == Defaults.SEED_ROSTER
        assert config.ratio_policy == RatioPolicy.PER_ATTENDANCE
        assert config.notifier.enabled is False

    def test_load_full_file(self, temp_settings_file: Path, temp_dir: Path) -> None:
        """전체 설정 로드"""
        config = load_settings(temp_settings_file)

        assert isinstance(config, AppConfig)
        assert config.db_path == temp_dir / "ledger.db"
        assert config.ratio_policy == RatioPolicy.WEIGHTED_BY_PAYMENTS
        assert config.roster == ("Alice", "Bob", "Carol")
        assert config.notifier.webhook_url == "https://hooks.slack.com/services/TEST"
        assert config.notifier.username == "TestBot"
        assert config.notifier.timeout == 3.0
        assert config.web_host == "0.0.0.0"
        assert config.web_port == 8080

    def test_empty_file_returns_defaults(self, temp_dir: Path) -> None:
        """빈 파일이면 기본 설정"""
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_settings(path) == default_config()

    def test_relative_db_path_uses_project_root(self, temp_dir: Path) -> None:
        """상대 db_path는 프로젝트 루트 기준"""
        path = temp_dir / "relative.yaml"
        path.write_text("db_path: data/other.db\n", encoding="utf-8")

        config = load_settings(path)

        assert config.db_path == PROJECT_ROOT / "data" / "other.db"

    def test_invalid_yaml_raises(self, temp_dir: Path) -> None:
        """YAML 파싱 실패"""
        path = temp_dir / "broken.yaml"
        path.write_text("roster: [unclosed\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="파싱 실패"):
            load_settings(path)

    def test_invalid_ratio_policy_raises(self, temp_dir: Path) -> None:
        """잘못된 ratio_policy"""
        path = temp_dir / "policy.yaml"
        path.write_text("ratio_policy: random\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="ratio_policy"):
            load_settings(path)

    def test_duplicate_roster_raises(self, temp_dir: Path) -> None:
        """중복 이름이 있는 roster"""
        path = temp_dir / "dup.yaml"
        path.write_text("roster: [A, B, A]\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="중복"):
            load_settings(path)

    def test_non_string_roster_raises(self, temp_dir: Path) -> None:
        """문자열이 아닌 roster 항목"""
        path = temp_dir / "roster.yaml"
        path.write_text("roster: [A, 3]\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="roster"):
            load_settings(path)

    def test_invalid_port_raises(self, temp_dir: Path) -> None:
        """숫자가 아닌 포트"""
        path = temp_dir / "port.yaml"
        path.write_text("web:\n  port: abc\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_settings_file: Path) -> None:
        """같은 인스턴스 반환"""
        first = get_settings(temp_settings_file)
        second = get_settings()

        assert first is second
        assert second.roster == ("Alice", "Bob", "Carol")

    def test_properties(self, temp_settings_file: Path, temp_dir: Path) -> None:
        """속성 접근"""
        settings = Settings(temp_settings_file)

        assert settings.db_path == temp_dir / "ledger.db"
        assert settings.ratio_policy == RatioPolicy.WEIGHTED_BY_PAYMENTS
        assert settings.notifier.enabled is True

    def test_reset(self, temp_settings_file: Path, temp_dir: Path) -> None:
        """reset 후 다시 로드"""
        get_settings(temp_settings_file)
        Settings.reset()

        settings = get_settings(temp_dir / "missing.yaml")

        assert settings.roster == Defaults.SEED_ROSTER


class TestLoggingSection:
    """logging 섹션 테스트"""

    def test_defaults(self, temp_dir: Path) -> None:
        """logging 섹션이 없으면 기본값"""
        path = temp_dir / "nolog.yaml"
        path.write_text("ratio_policy: per_attendance\n", encoding="utf-8")

        config = load_settings(path)

        assert config.log == LoggingConfig()
        assert config.log.log_dir == Paths.LOGS_DIR
        assert config.log.backup_count == Defaults.LOG_BACKUP_COUNT

    def test_custom_values(self, temp_dir: Path) -> None:
        path = temp_dir / "log.yaml"
        path.write_text(
            f"logging:\n"
            f"  console_level: debug\n"
            f"  file_level: WARNING\n"
            f"  dir: {(temp_dir / 'logs').as_posix()}\n"
            f"  backup_count: 3\n"
            f"  file_enabled: false\n",
            encoding="utf-8",
        )

        log = load_settings(path).log

        assert log.console_level == "DEBUG"
        assert log.file_level == "WARNING"
        assert log.log_dir == temp_dir / "logs"
        assert log.backup_count == 3
        assert log.file_enabled is False

    def test_invalid_level_raises(self, temp_dir: Path) -> None:
        path = temp_dir / "badlevel.yaml"
        path.write_text("logging:\n  console_level: LOUD\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="로그 레벨"):
            load_settings(path)

    @pytest.mark.parametrize("value", ["'false'", "0", "yes-please"])
    def test_file_enabled_must_be_bool(self, temp_dir: Path, value: str) -> None:
        """문자열/숫자 file_enabled 거부"""
        path = temp_dir / "file_enabled.yaml"
        path.write_text(f"logging:\n  file_enabled: {value}\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="file_enabled"):
            load_settings(path)


class TestSectionShape:
    """섹션/경로 형식 검증"""

    @pytest.mark.parametrize(
        "content",
        [
            "notifier: just-a-string\n",
            "web: [1]\n",
            "logging: x\n",
        ],
    )
    def test_non_mapping_section_raises(self, temp_dir: Path, content: str) -> None:
        """매핑이 아닌 섹션"""
        path = temp_dir / "section.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="섹션은 매핑"):
            load_settings(path)

    def test_null_section_uses_defaults(self, temp_dir: Path) -> None:
        """값 없는 섹션은 기본값"""
        path = temp_dir / "null_section.yaml"
        path.write_text("notifier:\nweb:\nlogging:\n", encoding="utf-8")

        config = load_settings(path)

        assert config.notifier == default_config().notifier
        assert config.web_port == Defaults.WEB_PORT
        assert config.log == LoggingConfig()

    @pytest.mark.parametrize("content", ["db_path: 42\n", "db_path: [a, b]\n", "logging:\n  dir: {a: 1}\n"])
    def test_non_string_path_raises(self, temp_dir: Path, content: str) -> None:
        """문자열이 아닌 경로"""
        path = temp_dir / "path.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="경로 문자열"):
            load_settings(path)
