"""希少動画フィルタ"""

from collections.abc import Iterable

from rare_finder.domain.entities import VideoDetail

RARE_VIEW_THRESHOLD = 10


def select_rare(
    details: Iterable[VideoDetail],
    threshold: int = RARE_VIEW_THRESHOLD,
) -> list[VideoDetail]:
    """再生回数が threshold 未満の動画だけを残す（順序は維持）"""
    return [detail for detail in details if detail.view_count < threshold]
