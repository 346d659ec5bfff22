"""時間窓ユーティリティ"""

import random
from datetime import datetime, timedelta, timezone

from rare_finder.domain.entities import TimeWindow

# 窓サイズの既定値（分）
DEFAULT_INITIAL_DURATION_MINUTES = 1.0
AGGRESSIVE_EXPANSION_FACTOR = 1440.0


def create_window(center: datetime, duration_minutes: float) -> TimeWindow:
    """
    中心時刻と長さから時間窓を作成

    Args:
        center: 窓の中心時刻
        duration_minutes: 窓の長さ（分）

    Returns:
        [center - duration/2, center + duration/2] の TimeWindow
    """
    half = timedelta(minutes=duration_minutes / 2)
    return TimeWindow(
        start_date=center - half,
        end_date=center + half,
        duration_minutes=duration_minutes,
    )


def create_initial_window(
    center: datetime,
    duration_minutes: float = DEFAULT_INITIAL_DURATION_MINUTES,
) -> TimeWindow:
    """探索開始時の小さな時間窓"""
    return create_window(center, duration_minutes)


def window_center(window: TimeWindow) -> datetime:
    return window.center


def expand(
    window: TimeWindow,
    factor: float = AGGRESSIVE_EXPANSION_FACTOR,
) -> TimeWindow:
    """中心を保ったまま窓を factor 倍に広げる"""
    return create_window(window_center(window), window.duration_minutes * factor)


def contract(
    window: TimeWindow,
    factor: float,
    min_duration_minutes: float,
) -> TimeWindow:
    """
    中心を保ったまま窓を縮める

    新しい長さは max(duration * factor, min_duration_minutes)。
    下限があるので縮小を繰り返しても窓が消えることはない。
    """
    new_duration = max(window.duration_minutes * factor, min_duration_minutes)
    return create_window(window_center(window), new_duration)


def to_rfc3339(instant: datetime) -> str:
    """API用タイムスタンプ（2024-01-01T00:00:00.000Z）"""
    utc = instant.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def window_cache_key(window: TimeWindow) -> str:
    """検索キャッシュのキー"""
    return f"{to_rfc3339(window.start_date)}_{to_rfc3339(window.end_date)}"


def random_past_instant(
    now: datetime,
    lookback_days: float,
    rng: random.Random | None = None,
) -> datetime:
    """
    [now - lookback_days, now] から一様にランダムな時刻を選ぶ

    Args:
        now: 基準時刻
        lookback_days: 遡る日数
        rng: 乱数生成器（テスト用に差し替え可能）
    """
    rng = rng or random.Random()
    offset_sec = rng.uniform(0, lookback_days * 86400)
    return now - timedelta(seconds=offset_sec)
