"""設定管理"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # API
    YOUTUBE_API_KEY: str
    YOUTUBE_API_URL: str = "https://www.googleapis.com/youtube/v3/"

    # 希少動画の判定
    RARE_VIEW_THRESHOLD: int = Field(default=10, gt=0)

    # 時間窓（分）
    INITIAL_WINDOW_DURATION_MINUTES: float = Field(default=1.0, gt=0)
    MIN_WINDOW_DURATION_MINUTES: float = Field(default=0.25, gt=0)
    # 探索を打ち切る窓の長さ（既定は約20年）
    MAX_WINDOW_DURATION_MINUTES: float = Field(default=20 * 365 * 1440, gt=0)

    # 窓の伸縮
    AGGRESSIVE_EXPANSION_FACTOR: float = Field(default=1440.0, gt=1)
    MODERATE_EXPANSION_FACTOR: float = Field(default=2.0, gt=1)
    CONTRACTION_FACTOR: float = Field(default=0.5, gt=0, lt=1)

    # 件数による混雑度の判定
    BUSY_PERIOD_THRESHOLD: int = Field(default=40, gt=0)
    MODERATE_PERIOD_THRESHOLD: int = Field(default=10, ge=0)

    # ランダム開始時刻をどこまで遡るか（日）
    LOOKBACK_DAYS: float = Field(default=15 * 365, gt=0)

    # 探索の上限
    MAX_SEARCH_STEPS: int = Field(default=40, gt=0)
    SEARCH_TIMEOUT_SEC: float = Field(default=300.0, gt=0)

    # ステータス表示のための待機（秒）
    STATUS_MESSAGE_DELAY_SEC: float = Field(default=1.0, ge=0)

    # API上限（search.list の maxResults / videos.list のID数）
    MAX_RESULTS_PER_REQUEST: int = Field(default=50, gt=0, le=50)
    MAX_IDS_PER_REQUEST: int = Field(default=50, gt=0, le=50)

    # Timeouts
    YOUTUBE_REQUEST_TIMEOUT: int = 10

    # Logging & Observability
    LOG_LEVEL: str = "INFO"
    LANGSMITH_TRACING: bool = False
    LANGSMITH_API_KEY: str | None = None
    LANGSMITH_PROJECT: str = "rare-finder"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def check_ordering(self) -> "Settings":
        """閾値と窓の長さの大小関係を検証"""
        if self.MODERATE_PERIOD_THRESHOLD >= self.BUSY_PERIOD_THRESHOLD:
            raise ValueError(
                "MODERATE_PERIOD_THRESHOLD must be less than BUSY_PERIOD_THRESHOLD"
            )
        if self.INITIAL_WINDOW_DURATION_MINUTES < self.MIN_WINDOW_DURATION_MINUTES:
            raise ValueError(
                "INITIAL_WINDOW_DURATION_MINUTES must not be less than "
                "MIN_WINDOW_DURATION_MINUTES"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """シングルトンで設定を取得"""
    return Settings()
