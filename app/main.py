"""コンソール エントリーポイント: ランダムな過去の時刻から希少動画を1回探す"""

import logging
import os
import sys
from pathlib import Path

# プロジェクトルートをパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# .envファイルを最初に読み込む（LangSmith等の環境変数を設定するため）
from dotenv import load_dotenv
load_dotenv(project_root / ".env")

from config.settings import get_settings
from rare_finder.application.result_cache import ResultCache
from rare_finder.application.usecases.find_rare_videos import (
    FindRareVideosConfig,
    FindRareVideosUseCase,
    SearchPhase,
    SearchState,
)
from rare_finder.application.usecases.video_lookup import VideoLookup, VideoLookupConfig
from rare_finder.infrastructure.logging_config import get_logger, setup_logging
from rare_finder.infrastructure.youtube_data_api import YouTubeDataAPIClient

# ロギング初期化
log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_str, logging.INFO)
setup_logging(level=log_level)

logger = get_logger(__name__)


def init_usecase(cache: ResultCache | None = None) -> FindRareVideosUseCase:
    """DIでユースケースを組み立て"""
    settings = get_settings()

    video_lookup = VideoLookup(
        api=YouTubeDataAPIClient(
            api_key=settings.YOUTUBE_API_KEY,
            api_url=settings.YOUTUBE_API_URL,
            timeout_sec=settings.YOUTUBE_REQUEST_TIMEOUT,
        ),
        cache=cache,
        config=VideoLookupConfig(
            max_results_per_request=settings.MAX_RESULTS_PER_REQUEST,
            max_ids_per_request=settings.MAX_IDS_PER_REQUEST,
        ),
    )

    return FindRareVideosUseCase(
        video_lookup=video_lookup,
        config=FindRareVideosConfig(
            rare_view_threshold=settings.RARE_VIEW_THRESHOLD,
            initial_window_minutes=settings.INITIAL_WINDOW_DURATION_MINUTES,
            min_window_minutes=settings.MIN_WINDOW_DURATION_MINUTES,
            max_window_minutes=settings.MAX_WINDOW_DURATION_MINUTES,
            aggressive_expansion_factor=settings.AGGRESSIVE_EXPANSION_FACTOR,
            moderate_expansion_factor=settings.MODERATE_EXPANSION_FACTOR,
            contraction_factor=settings.CONTRACTION_FACTOR,
            busy_period_threshold=settings.BUSY_PERIOD_THRESHOLD,
            moderate_period_threshold=settings.MODERATE_PERIOD_THRESHOLD,
            lookback_days=settings.LOOKBACK_DAYS,
            max_steps=settings.MAX_SEARCH_STEPS,
            timeout_sec=settings.SEARCH_TIMEOUT_SEC,
            status_message_delay_sec=settings.STATUS_MESSAGE_DELAY_SEC,
        ),
    )


def print_status(state: SearchState) -> None:
    """ステータスメッセージが変わったら表示"""
    if state.status_message:
        print(f"⏳ {state.status_message}", flush=True)


def print_result(state: SearchState) -> None:
    """最終結果とAPI統計を表示"""
    if state.phase == SearchPhase.SUCCEEDED:
        print(f"\n💎 {len(state.results)}件の希少動画が見つかりました")
        for i, video in enumerate(state.results, 1):
            print(f"  {i}. {video.title} ({video.view_count}回再生)")
            print(f"     {video.channel_title} / {video.published_at:%Y-%m-%d %H:%M}")
            print(f"     {video.url}")
    elif state.error:
        print(f"\n❌ {state.error}")

    stats = state.api_stats
    print(
        "\n📊 API統計: "
        f"検索 {stats.search_api_calls}回 / 詳細 {stats.video_detail_api_calls}回 / "
        f"合計 {stats.total_api_calls}回 / 失敗 {stats.failed_api_calls}回 / "
        f"キャッシュ 検索{stats.cached_searches}件・詳細{stats.cached_video_details}件"
    )


def main() -> int:
    usecase = init_usecase()

    last_message: list[str | None] = [None]

    def on_change(state: SearchState) -> None:
        if state.status_message != last_message[0]:
            last_message[0] = state.status_message
            print_status(state)

    usecase.subscribe(on_change)

    try:
        final_state = usecase.start_search()
    except KeyboardInterrupt:
        usecase.cancel()
        final_state = usecase.state

    print_result(final_state)
    return 0 if final_state.phase == SearchPhase.SUCCEEDED else 1


if __name__ == "__main__":
    sys.exit(main())
