"""
pytest 공통 fixture 정의
"""

import tempfile
from pathlib import Path

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    db_path = (temp_dir / "ledger.db").as_posix()
    settings_content = f"""# 테스트용 settings.yaml
db_path: "{db_path}"
ratio_policy: weighted_by_payments

roster:
  - "Alice"
  - "Bob"
  - "Carol"

notifier:
  webhook_url: "https://hooks.slack.com/services/TEST"
  username: "TestBot"
  timeout: 3

web:
  host: 0.0.0.0
  port: 8080
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """테스트 간 Settings 싱글턴 격리"""
    Settings.reset()
    yield
    Settings.reset()
