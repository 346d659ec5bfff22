"""メインユースケース: 時間窓を伸縮させながら希少動画を探す"""

import random
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from rare_finder.application.usecases.video_lookup import VideoLookup
from rare_finder.domain.entities import (
    ApiUsageStats,
    ApiUsageStatsSnapshot,
    TimeWindow,
    VideoDetail,
)
from rare_finder.domain.exceptions import QuotaExceededError, RareVideoNotFoundError
from rare_finder.domain.rarity import select_rare
from rare_finder.domain.time_window import (
    contract,
    create_initial_window,
    expand,
    random_past_instant,
    window_cache_key,
)
from rare_finder.infrastructure.logging_config import LogContext, get_logger, trace_chain

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "エラーが発生しました。もう一度お試しください。"
QUOTA_ERROR_MESSAGE = "YouTube APIの利用上限に達しました。時間をおいて再度お試しください。"


class SearchPhase(str, Enum):
    """探索セッションの状態"""

    IDLE = "idle"
    STEPPING = "stepping"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SearchErrorKind(str, Enum):
    """セッション失敗の種類"""

    UNEXPECTED = "unexpected"
    QUOTA_EXCEEDED = "quota_exceeded"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SearchState:
    """呼び出し元（UIなど）に公開するセッション状態のスナップショット"""

    phase: SearchPhase = SearchPhase.IDLE
    is_loading: bool = False
    results: tuple[VideoDetail, ...] = ()
    current_window: TimeWindow | None = None
    status_message: str | None = None
    error: str | None = None
    error_kind: SearchErrorKind | None = None
    api_stats: ApiUsageStatsSnapshot = field(default_factory=ApiUsageStatsSnapshot)
    step: int = 0
    expansion_count: int = 0


@dataclass
class FindRareVideosConfig:
    """ユースケースの設定"""

    rare_view_threshold: int = 10  # この再生回数未満を希少とみなす
    initial_window_minutes: float = 1.0
    min_window_minutes: float = 0.25  # 縮小の下限
    max_window_minutes: float = 20 * 365 * 1440  # これを超えたら探索終了
    aggressive_expansion_factor: float = 1440.0
    moderate_expansion_factor: float = 2.0
    contraction_factor: float = 0.5
    busy_period_threshold: int = 40  # これより多ければ窓を縮める
    moderate_period_threshold: int = 10  # これより多ければ控えめに広げる
    lookback_days: float = 15 * 365
    max_steps: int = 40
    timeout_sec: float = 300.0
    status_message_delay_sec: float = 1.0  # ステータス表示のための待機


def format_minutes(minutes: float) -> str:
    if float(minutes).is_integer():
        return f"{int(minutes):,}"
    return f"{minutes:,.2f}"


class FindRareVideosUseCase:
    """
    メインユースケース: ランダムな過去の時刻から時間窓を伸縮させて希少動画を探す

    1ステップの流れ:
    1. 窓内の動画IDを検索
    2. 0件なら窓を大きく広げる
    3. 詳細を取得し、希少動画があれば終了
    4. なければ件数に応じて「縮める / 控えめに広げる / 大きく広げる」

    セッションは世代番号で管理し、新しい start_search や cancel の後は
    古いループが状態を書き換えないようにしている。
    """

    def __init__(
        self,
        video_lookup: VideoLookup,
        config: FindRareVideosConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.video_lookup = video_lookup
        self.config = config or FindRareVideosConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._monotonic = monotonic

        self._lock = threading.Lock()
        self._generation = 0
        self._state = SearchState()
        self._stats = ApiUsageStats()
        self._listeners: list[Callable[[SearchState], None]] = []

    # --- 公開API ---

    @property
    def state(self) -> SearchState:
        """現在のセッション状態"""
        with self._lock:
            return self._snapshot_locked()

    def subscribe(self, listener: Callable[[SearchState], None]) -> Callable[[], None]:
        """
        状態が変わるたびに呼ばれるリスナーを登録

        Returns:
            登録解除用の関数
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @trace_chain(name="rare_video_search")
    def start_search(self) -> SearchState:
        """
        新しい探索セッションを開始し、終了するまでブロックする

        実行中のセッションがあればそれは古いセッションとなり、以降は状態を更新しない。

        Returns:
            終了時のSearchState
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._stats = self.video_lookup.reset_stats()
            stats = self._stats
            self._state = SearchState(phase=SearchPhase.STEPPING, is_loading=True)
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

        ctx = LogContext(generation=generation)
        logger.info("=" * 50)
        logger.info(f"[Search] 探索開始 | {ctx}")

        try:
            self._run(generation, stats, ctx)
        except QuotaExceededError as e:
            logger.error(f"[Search] クォータ超過で終了: {e} | {ctx}")
            self._fail(generation, SearchErrorKind.QUOTA_EXCEEDED, QUOTA_ERROR_MESSAGE)
        except RareVideoNotFoundError as e:
            logger.warning(f"[Search] 希少動画が見つからず終了: {e} | {ctx}")
            self._fail(generation, SearchErrorKind.NOT_FOUND, str(e))
        except Exception:
            logger.exception(f"[Search] 予期しないエラー | {ctx}")
            self._fail(generation, SearchErrorKind.UNEXPECTED, GENERIC_ERROR_MESSAGE)

        final_state = self.state
        logger.info(
            f"[Search] 探索終了: phase={final_state.phase.value}, "
            f"results={len(final_state.results)}, stats={final_state.api_stats}"
        )
        logger.info("=" * 50)
        return final_state

    def start_search_in_background(self) -> threading.Thread:
        """UIスレッドをブロックしないよう別スレッドで探索を開始"""
        thread = threading.Thread(
            target=self.start_search,
            name="rare-video-search",
            daemon=True,
        )
        thread.start()
        return thread

    def cancel(self) -> None:
        """実行中のセッションを中断"""
        with self._lock:
            if not self._state.is_loading:
                return
            self._generation += 1
            self._state = replace(
                self._state,
                phase=SearchPhase.CANCELLED,
                is_loading=False,
                status_message=None,
            )
            snapshot = self._snapshot_locked()
        logger.info("[Search] セッションを中断しました")
        self._notify(snapshot)

    # --- 探索ループ ---

    def _run(self, generation: int, stats: ApiUsageStats, ctx: LogContext) -> None:
        config = self.config
        started_at = self._monotonic()
        window = create_initial_window(self._random_center(), config.initial_window_minutes)
        step = 1
        visited: set[str] = set()

        while True:
            if step > config.max_steps:
                raise RareVideoNotFoundError(
                    f"{config.max_steps}ステップ探索しても希少動画が見つかりませんでした。"
                )
            if self._monotonic() - started_at > config.timeout_sec:
                raise RareVideoNotFoundError(
                    f"{config.timeout_sec:g}秒以内に希少動画が見つかりませんでした。"
                )

            window_key = window_cache_key(window)
            visited.add(window_key)
            step_ctx = ctx.update(step=step, window=window_key)
            message = (
                f"ステップ{step}: {format_minutes(window.duration_minutes)}分の窓で"
                "動画をスキャン中"
            )
            if not self._update(
                generation,
                current_window=window,
                step=step,
                expansion_count=step - 1,
                status_message=message,
            ):
                logger.info(f"[Search] 古いセッションのため停止 | {step_ctx}")
                return
            logger.info(f"[Search] {message} | {step_ctx}")

            video_ids = self.video_lookup.list_candidates(window, stats)

            if not video_ids:
                next_window = self._expand(window, config.aggressive_expansion_factor)
                multiple = round(next_window.duration_minutes / window.duration_minutes)
                message = (
                    f"動画が見つかりません。検索範囲を{multiple}倍の"
                    f"{format_minutes(next_window.duration_minutes)}分に広げます..."
                )
            else:
                if not self._update(
                    generation,
                    status_message=(
                        f"{len(video_ids)}件の動画を発見！再生回数を確認しています..."
                    ),
                ):
                    return
                details = self.video_lookup.fetch_details(video_ids, stats)
                rare_videos = select_rare(details, config.rare_view_threshold)

                if rare_videos:
                    logger.info(
                        f"[Search] 希少動画 {len(rare_videos)}件を発見 | {step_ctx}"
                    )
                    self._update(
                        generation,
                        phase=SearchPhase.SUCCEEDED,
                        is_loading=False,
                        results=tuple(rare_videos),
                        status_message=None,
                    )
                    return

                next_window, message = self._plan_next_window(
                    window, len(video_ids), len(details)
                )

            if window_cache_key(next_window) in visited:
                # 縮小と拡大で同じ窓を往復するとキャッシュを読み続けるだけになる
                next_window = create_initial_window(
                    self._random_center(), config.initial_window_minutes
                )
                message = "同じ範囲に戻ってしまうため、別の時刻から探し直します..."

            if not self._update(generation, status_message=message):
                return
            logger.info(f"[Search] {message} | {step_ctx}")

            self._sleep(config.status_message_delay_sec)
            window = next_window
            step += 1

    def _plan_next_window(
        self,
        window: TimeWindow,
        id_count: int,
        detail_count: int,
    ) -> tuple[TimeWindow, str]:
        """
        希少動画がなかった窓の次の窓を件数に応じて決める

        Returns:
            (次の窓, ステータスメッセージ)
        """
        config = self.config

        if id_count > config.busy_period_threshold:
            # 混雑した期間は広げても普通の動画が増えるだけなので縮める
            next_window = contract(
                window, config.contraction_factor, config.min_window_minutes
            )
            if next_window.duration_minutes >= window.duration_minutes:
                # 下限に達した窓は同じキャッシュを読み続けるだけなので時刻を変える
                next_window = create_initial_window(
                    self._random_center(), config.initial_window_minutes
                )
                return next_window, (
                    f"{detail_count}件の動画が最小の窓に集中しています。"
                    "別の時刻から探し直します..."
                )
            return next_window, (
                f"混雑した期間で{detail_count}件の動画を発見。範囲を絞り込みます..."
            )

        if id_count > config.moderate_period_threshold:
            next_window = self._expand(window, config.moderate_expansion_factor)
            return next_window, (
                f"{detail_count}件の動画を発見しましたが、希少な動画はまだありません。"
                "検索範囲を少しずつ広げます..."
            )

        next_window = self._expand(window, config.aggressive_expansion_factor)
        return next_window, (
            f"{detail_count}件の動画を発見しましたが、希少な動画はまだありません。"
            "検索範囲を大きく広げます..."
        )

    def _expand(self, window: TimeWindow, factor: float) -> TimeWindow:
        new_duration = window.duration_minutes * factor
        if new_duration > self.config.max_window_minutes:
            raise RareVideoNotFoundError(
                f"検索範囲が上限（{format_minutes(self.config.max_window_minutes)}分）"
                "を超えても希少動画が見つかりませんでした。"
            )
        return expand(window, factor)

    def _random_center(self) -> datetime:
        return random_past_instant(self._clock(), self.config.lookback_days, self._rng)

    # --- 状態管理 ---

    def _snapshot_locked(self) -> SearchState:
        return replace(self._state, api_stats=self._stats.snapshot())

    def _update(self, generation: int, **changes) -> bool:
        """現在のセッションなら状態を更新してリスナーに通知する"""
        with self._lock:
            if generation != self._generation:
                return False
            self._state = replace(self._state, **changes)
            snapshot = self._snapshot_locked()
        self._notify(snapshot)
        return True

    def _fail(self, generation: int, kind: SearchErrorKind, message: str) -> None:
        self._update(
            generation,
            phase=SearchPhase.FAILED,
            is_loading=False,
            error=message,
            error_kind=kind,
            status_message=None,
        )

    def _notify(self, snapshot: SearchState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[Search] リスナーでエラーが発生しました")
