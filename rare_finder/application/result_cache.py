"""検索結果・動画詳細のインメモリキャッシュ"""

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from rare_finder.domain.entities import TimeWindow, VideoDetail
from rare_finder.domain.time_window import window_cache_key


@dataclass
class DetailLookup:
    """詳細キャッシュの照会結果"""

    cached: dict[str, VideoDetail] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)  # 入力順・重複なし


class ResultCache:
    """
    時間窓→動画IDリスト、動画ID→詳細 の2つのキャッシュ

    - 追加のみ（削除・更新・TTLなし）で、容量の上限もない
    - 一度格納した値はプロセス終了まで正しいものとして扱う
      （探索中に上流のデータが変わらないことを前提とした単純化）
    - 同じインスタンスを複数のユースケースに渡せば共有できる
    """

    def __init__(self) -> None:
        self._search: dict[str, tuple[str, ...]] = {}
        self._details: dict[str, VideoDetail] = {}
        self._lock = threading.Lock()

    def lookup_search(self, window: TimeWindow) -> tuple[str, ...] | None:
        with self._lock:
            return self._search.get(window_cache_key(window))

    def store_search(self, window: TimeWindow, video_ids: Sequence[str]) -> None:
        key = window_cache_key(window)
        with self._lock:
            # 先に格納された値を優先
            self._search.setdefault(key, tuple(video_ids))

    def lookup_details(self, video_ids: Iterable[str]) -> DetailLookup:
        """キャッシュ済みと未取得に振り分ける"""
        result = DetailLookup()
        with self._lock:
            for video_id in video_ids:
                if video_id in result.cached or video_id in result.missing:
                    continue
                detail = self._details.get(video_id)
                if detail is not None:
                    result.cached[video_id] = detail
                else:
                    result.missing.append(video_id)
        return result

    def get_detail(self, video_id: str) -> VideoDetail | None:
        with self._lock:
            return self._details.get(video_id)

    def store_details(self, details: Iterable[VideoDetail]) -> None:
        with self._lock:
            for detail in details:
                self._details.setdefault(detail.id, detail)

    @property
    def search_entries(self) -> int:
        with self._lock:
            return len(self._search)

    @property
    def detail_entries(self) -> int:
        with self._lock:
            return len(self._details)
