"""
core/logging.py 테스트

루트 로거 핸들러 구성 테스트 (테스트 후 원래 핸들러 복원)
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.config.loader import LoggingConfig
from core.logging import QUIET_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger() -> None:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    """setup_logging() 테스트"""

    def test_console_and_file(self, tmp_path: Path) -> None:
        """콘솔 + 일별 파일 핸들러"""
        config = LoggingConfig(console_level="WARNING", file_level="DEBUG", log_dir=tmp_path)

        root = setup_logging("web", config)

        assert len(root.handlers) == 2
        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert file_handlers[0].backupCount == config.backup_count
        assert get_log_file_path("web", tmp_path).exists()

    def test_file_disabled(self, tmp_path: Path) -> None:
        root = setup_logging("web", LoggingConfig(log_dir=tmp_path, file_enabled=False))

        assert len(root.handlers) == 1
        assert not any(isinstance(h, TimedRotatingFileHandler) for h in root.handlers)
        assert not get_log_file_path("web", tmp_path).exists()

    def test_repeated_setup_replaces_handlers(self, tmp_path: Path) -> None:
        """여러 번 호출해도 핸들러 중복 없음"""
        config = LoggingConfig(log_dir=tmp_path)

        setup_logging("web", config)
        root = setup_logging("web", config)

        assert len(root.handlers) == 2

    def test_quiet_loggers(self, tmp_path: Path) -> None:
        setup_logging("web", LoggingConfig(log_dir=tmp_path, file_enabled=False))

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_log_file_path(self, tmp_path: Path) -> None:
        assert get_log_file_path("web", tmp_path) == tmp_path / "web.log"
