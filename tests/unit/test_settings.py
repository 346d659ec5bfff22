"""設定のテスト"""

import pytest
from pydantic import ValidationError

from config.settings import Settings


class TestSettings:
    """Settingsのテスト"""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        settings = Settings(_env_file=None)

        assert settings.YOUTUBE_API_KEY == "test-key"
        assert settings.RARE_VIEW_THRESHOLD == 10
        assert settings.AGGRESSIVE_EXPANSION_FACTOR == 1440.0
        assert settings.MAX_IDS_PER_REQUEST == 50
        assert settings.MODERATE_PERIOD_THRESHOLD < settings.BUSY_PERIOD_THRESHOLD

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        monkeypatch.setenv("RARE_VIEW_THRESHOLD", "25")
        monkeypatch.setenv("STATUS_MESSAGE_DELAY_SEC", "0")
        settings = Settings(_env_file=None)

        assert settings.RARE_VIEW_THRESHOLD == 25
        assert settings.STATUS_MESSAGE_DELAY_SEC == 0

    def test_api_limit_enforced(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """1リクエストのID数はAPI上限50まで"""
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        monkeypatch.setenv("MAX_IDS_PER_REQUEST", "100")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    @pytest.mark.parametrize(
        "name,value",
        [
            ("MODERATE_PERIOD_THRESHOLD", "40"),
            ("MODERATE_PERIOD_THRESHOLD", "45"),
            ("INITIAL_WINDOW_DURATION_MINUTES", "0.1"),
        ],
    )
    def test_ordering_enforced(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        """moderate < busy、初期窓 >= 最小窓でなければ拒否する"""
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_initial_window_may_equal_floor(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        monkeypatch.setenv("INITIAL_WINDOW_DURATION_MINUTES", "0.25")
        settings = Settings(_env_file=None)
        assert settings.INITIAL_WINDOW_DURATION_MINUTES == settings.MIN_WINDOW_DURATION_MINUTES

    def test_contraction_must_shrink(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
        monkeypatch.setenv("CONTRACTION_FACTOR", "1.5")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
