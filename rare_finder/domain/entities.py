"""ドメインエンティティ定義"""

import threading
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class TimeWindow:
    """公開日時で検索を絞り込むための時間窓（値オブジェクト）"""

    start_date: datetime
    end_date: datetime
    duration_minutes: float

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be later than start_date")

    @property
    def center(self) -> datetime:
        """窓の中心時刻"""
        return self.start_date + (self.end_date - self.start_date) / 2


@dataclass(frozen=True)
class VideoDetail:
    """videos.list で取得した動画の詳細"""

    id: str
    title: str
    description: str
    thumbnail_url: str
    published_at: datetime
    view_count: int
    channel_title: str

    def __post_init__(self) -> None:
        if self.view_count < 0:
            raise ValueError("view_count must be non-negative")

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"

    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.id}"


@dataclass
class ApiUsageStats:
    """
    API呼び出し回数の集計

    検索セッションごとに新しいインスタンスを作る。
    複数スレッド（詳細取得のバッチ）から更新されるためロックで保護する。
    """

    search_api_calls: int = 0
    video_detail_api_calls: int = 0
    total_api_calls: int = 0
    cached_searches: int = 0
    cached_video_details: int = 0
    failed_api_calls: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def record_search_call(self) -> None:
        with self._lock:
            self.search_api_calls += 1
            self.total_api_calls += 1

    def record_video_detail_call(self) -> None:
        with self._lock:
            self.video_detail_api_calls += 1
            self.total_api_calls += 1

    def record_cached_search(self) -> None:
        with self._lock:
            self.cached_searches += 1

    def record_cached_video_details(self, count: int) -> None:
        with self._lock:
            self.cached_video_details += count

    def record_failure(self) -> None:
        with self._lock:
            self.failed_api_calls += 1

    def snapshot(self) -> "ApiUsageStatsSnapshot":
        """読み取り専用のコピーを返す"""
        with self._lock:
            return ApiUsageStatsSnapshot(
                search_api_calls=self.search_api_calls,
                video_detail_api_calls=self.video_detail_api_calls,
                total_api_calls=self.total_api_calls,
                cached_searches=self.cached_searches,
                cached_video_details=self.cached_video_details,
                failed_api_calls=self.failed_api_calls,
            )


@dataclass(frozen=True)
class ApiUsageStatsSnapshot:
    """呼び出し元に公開するAPI統計（イミュータブル）"""

    search_api_calls: int = 0
    video_detail_api_calls: int = 0
    total_api_calls: int = 0
    cached_searches: int = 0
    cached_video_details: int = 0
    failed_api_calls: int = 0
