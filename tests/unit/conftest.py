"""ユニットテスト共通のフェイクとフィクスチャ"""

import random
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from rare_finder.application.result_cache import ResultCache
from rare_finder.application.usecases.find_rare_videos import (
    FindRareVideosConfig,
    FindRareVideosUseCase,
)
from rare_finder.application.usecases.video_lookup import VideoLookup, VideoLookupConfig
from rare_finder.domain.entities import VideoDetail

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_detail(video_id: str, view_count: int = 100) -> VideoDetail:
    return VideoDetail(
        id=video_id,
        title=f"title {video_id}",
        description="",
        thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg",
        published_at=NOW - timedelta(days=1),
        view_count=view_count,
        channel_title="channel",
    )


class SequenceRandom(random.Random):
    """uniform() が決まった値を順に返す乱数（最後の値を繰り返す）"""

    def __init__(self, values: list[float] | None = None):
        super().__init__(0)
        self.values = list(values or [0.0])

    def uniform(self, a: float, b: float) -> float:
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class FakeYouTubeAPI:
    """
    YouTubeVideoAPI のフェイク

    search_responses: search_video_ids が順に返す値（例外なら送出）。
        使い切った後は空リストを返す。
    view_counts: list_videos が返す動画の再生回数（ここにないIDは返さない）
    detail_errors: このIDを含むバッチで送出する例外
    """

    def __init__(
        self,
        search_responses: list | None = None,
        view_counts: dict[str, int] | None = None,
    ):
        self.search_responses = list(search_responses or [])
        self.view_counts = dict(view_counts or {})
        self.detail_errors: dict[str, Exception] = {}
        self.on_list_videos: Callable[[list[str]], None] | None = None
        self.search_calls: list[tuple[datetime, datetime, int]] = []
        self.detail_calls: list[list[str]] = []
        self._lock = threading.Lock()

    def search_video_ids(
        self,
        published_after: datetime,
        published_before: datetime,
        max_results: int = 50,
    ) -> list[str]:
        self.search_calls.append((published_after, published_before, max_results))
        response = self.search_responses.pop(0) if self.search_responses else []
        if isinstance(response, Exception):
            raise response
        return list(response)

    def list_videos(self, video_ids: list[str]) -> list[VideoDetail]:
        with self._lock:
            self.detail_calls.append(list(video_ids))
        if self.on_list_videos is not None:
            self.on_list_videos(video_ids)
        for video_id in video_ids:
            if video_id in self.detail_errors:
                raise self.detail_errors[video_id]
        return [
            build_detail(video_id, self.view_counts[video_id])
            for video_id in video_ids
            if video_id in self.view_counts
        ]

    def search_windows(self) -> list[tuple[datetime, timedelta]]:
        """検索された窓の (中心, 長さ)"""
        return [
            (after + (before - after) / 2, before - after)
            for after, before, _ in self.search_calls
        ]


@pytest.fixture
def make_detail() -> Callable[..., VideoDetail]:
    return build_detail


@pytest.fixture
def fake_api() -> FakeYouTubeAPI:
    return FakeYouTubeAPI()


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache()


@pytest.fixture
def make_lookup(cache: ResultCache) -> Callable[..., VideoLookup]:
    def _make(api: FakeYouTubeAPI, batch_size: int = 50) -> VideoLookup:
        return VideoLookup(
            api=api,
            cache=cache,
            config=VideoLookupConfig(
                max_results_per_request=50,
                max_ids_per_request=batch_size,
            ),
        )

    return _make


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_usecase(
    make_lookup: Callable[..., VideoLookup],
    sleeps: list[float],
) -> Callable[..., FindRareVideosUseCase]:
    def _make(
        api: FakeYouTubeAPI,
        rng: random.Random | None = None,
        **config_overrides,
    ) -> FindRareVideosUseCase:
        config = FindRareVideosConfig(
            rare_view_threshold=10,
            initial_window_minutes=1.0,
            min_window_minutes=0.25,
            aggressive_expansion_factor=1440.0,
            moderate_expansion_factor=2.0,
            contraction_factor=0.5,
            busy_period_threshold=50,
            moderate_period_threshold=10,
            lookback_days=365,
            max_steps=20,
            timeout_sec=60.0,
            status_message_delay_sec=0.5,
        )
        for key, value in config_overrides.items():
            setattr(config, key, value)
        return FindRareVideosUseCase(
            video_lookup=make_lookup(api),
            config=config,
            clock=lambda: NOW,
            sleep=sleeps.append,
            rng=rng or SequenceRandom([3600.0]),
        )

    return _make


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_rng() -> Callable[..., SequenceRandom]:
    return SequenceRandom
