"""キャッシュ・API統計付きの動画ルックアップ"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from rare_finder.application.interfaces.youtube_video_api import YouTubeVideoAPI
from rare_finder.application.result_cache import ResultCache
from rare_finder.domain.entities import ApiUsageStats, TimeWindow, VideoDetail
from rare_finder.domain.exceptions import YouTubeAPIError
from rare_finder.domain.time_window import window_cache_key
from rare_finder.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class VideoLookupConfig:
    """ルックアップの設定"""

    max_results_per_request: int = 50  # search.list の maxResults
    max_ids_per_request: int = 50  # videos.list に渡せるIDの上限


class VideoLookup:
    """
    上流APIへの2種類の呼び出しをキャッシュ・集計付きでラップする

    一時的なAPIエラー（YouTubeAPIError）はここで吸収し、
    検索は空リスト、詳細取得はキャッシュ済みの分だけを返す。
    クォータ超過とレスポンス形式エラーは呼び出し元へ送出する。
    """

    def __init__(
        self,
        api: YouTubeVideoAPI,
        cache: ResultCache | None = None,
        config: VideoLookupConfig | None = None,
    ):
        self.api = api
        self.cache = cache or ResultCache()
        self.config = config or VideoLookupConfig()
        self.stats = ApiUsageStats()

    def reset_stats(self) -> ApiUsageStats:
        """新しい集計を開始して返す（キャッシュはそのまま）"""
        self.stats = ApiUsageStats()
        return self.stats

    def list_candidates(
        self,
        window: TimeWindow,
        stats: ApiUsageStats | None = None,
    ) -> list[str]:
        """
        時間窓内に公開された動画IDを取得

        Args:
            window: 検索する時間窓
            stats: 集計先（省略時は self.stats）

        Returns:
            動画IDのリスト。APIエラー時は空リスト
        """
        stats = stats or self.stats
        cache_key = window_cache_key(window)

        cached = self.cache.lookup_search(window)
        if cached is not None:
            logger.debug(f"[Lookup] 検索キャッシュ使用: {cache_key}")
            stats.record_cached_search()
            return list(cached)

        stats.record_search_call()
        try:
            video_ids = self.api.search_video_ids(
                published_after=window.start_date,
                published_before=window.end_date,
                max_results=self.config.max_results_per_request,
            )
        except YouTubeAPIError as e:
            stats.record_failure()
            logger.warning(f"[Lookup] 検索失敗（0件として扱う）: {e}")
            return []

        self.cache.store_search(window, video_ids)
        logger.debug(f"[Lookup] 検索結果 {len(video_ids)}件をキャッシュ: {cache_key}")
        return list(video_ids)

    def fetch_details(
        self,
        video_ids: list[str],
        stats: ApiUsageStats | None = None,
    ) -> list[VideoDetail]:
        """
        動画詳細をバッチ並列で取得

        未キャッシュのIDを max_ids_per_request 件ずつのバッチに分け、
        全バッチを同時に投げて全て完了するまで待つ。
        失敗したバッチは読み飛ばし、他のバッチの結果は使う。

        Returns:
            入力順に並んだVideoDetailのリスト（詳細が得られなかったIDは除く）
        """
        stats = stats or self.stats
        if not video_ids:
            return []

        lookup = self.cache.lookup_details(video_ids)
        if lookup.cached:
            stats.record_cached_video_details(len(lookup.cached))

        if not lookup.missing:
            logger.debug(f"[Lookup] 詳細は全件キャッシュ済み: {len(lookup.cached)}件")
            return [lookup.cached[v] for v in video_ids if v in lookup.cached]

        size = self.config.max_ids_per_request
        batches = [
            lookup.missing[i : i + size] for i in range(0, len(lookup.missing), size)
        ]
        logger.info(
            f"[Lookup] 詳細取得: 未キャッシュ{len(lookup.missing)}件を"
            f"{len(batches)}バッチで並列取得 (キャッシュ済み{len(lookup.cached)}件)"
        )

        with ThreadPoolExecutor(max_workers=len(batches)) as executor:
            futures = [
                executor.submit(self._fetch_batch, batch, stats) for batch in batches
            ]
        # 全バッチの完了を待ってから結果を反映する
        pending_error: Exception | None = None
        for future in futures:
            try:
                self.cache.store_details(future.result())
            except Exception as e:
                # クォータ超過などは成功したバッチを反映してから送出
                pending_error = pending_error or e
        if pending_error is not None:
            raise pending_error

        resolved = []
        for video_id in video_ids:
            detail = lookup.cached.get(video_id) or self.cache.get_detail(video_id)
            if detail is not None:
                resolved.append(detail)
        return resolved

    def _fetch_batch(
        self,
        batch: list[str],
        stats: ApiUsageStats,
    ) -> list[VideoDetail]:
        """1バッチ分の videos.list 呼び出し"""
        stats.record_video_detail_call()
        try:
            return self.api.list_videos(batch)
        except YouTubeAPIError as e:
            stats.record_failure()
            logger.warning(f"[Lookup] 詳細取得バッチ失敗 ({len(batch)}件): {e}")
            return []
