"""YouTube動画APIインターフェース"""

from datetime import datetime
from typing import Protocol

from rare_finder.domain.entities import VideoDetail


class YouTubeVideoAPI(Protocol):
    """
    上流の検索APIが提供する2種類の呼び出し

    実装は失敗時に以下を送出する:
    - YouTubeAPIError: 一時的なネットワーク/HTTPエラー
    - QuotaExceededError: クォータ超過
    - ResponseShapeError: レスポンス形式の不一致
    """

    def search_video_ids(
        self,
        published_after: datetime,
        published_before: datetime,
        max_results: int = 50,
    ) -> list[str]:
        """
        指定期間に公開された動画IDを取得

        Args:
            published_after: 公開日時の下限
            published_before: 公開日時の上限
            max_results: 最大取得件数（API上限は50）

        Returns:
            動画IDのリスト（APIが返した順）
        """
        ...

    def list_videos(self, video_ids: list[str]) -> list[VideoDetail]:
        """
        動画IDの詳細（再生回数・メタデータ）を取得

        Args:
            video_ids: 動画IDのリスト（最大50件）

        Returns:
            VideoDetailのリスト。削除済みなどでAPIが返さなかったIDは含まれない
        """
        ...
