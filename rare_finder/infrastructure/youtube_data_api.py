"""YouTube Data API v3 クライアント"""

import json
import threading
from datetime import datetime
from typing import Any, Callable

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rare_finder.domain.entities import VideoDetail
from rare_finder.domain.exceptions import (
    QuotaExceededError,
    ResponseShapeError,
    YouTubeAPIError,
)
from rare_finder.domain.time_window import to_rfc3339
from rare_finder.infrastructure.logging_config import get_logger, trace_tool
from rare_finder.infrastructure.retry import api_retry

logger = get_logger(__name__)

DEFAULT_API_URL = "https://www.googleapis.com/youtube/v3/"
# クォータ超過を示す errors[].reason
QUOTA_REASONS = frozenset({"quotaExceeded", "dailyLimitExceeded"})
THUMBNAIL_PREFERENCE = ("medium", "high", "default")


# --- レスポンスの型（境界で検証する） ---


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchItemId(_Payload):
    kind: str | None = None
    video_id: str = Field(alias="videoId")


class SearchItem(_Payload):
    id: SearchItemId


class SearchListResponse(_Payload):
    """search.list のレスポンス"""

    items: list[SearchItem] = Field(default_factory=list)


class Thumbnail(_Payload):
    url: str


class VideoSnippet(_Payload):
    title: str
    description: str = ""
    published_at: datetime = Field(alias="publishedAt")
    channel_title: str = Field(default="", alias="channelTitle")
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)


class VideoStatistics(_Payload):
    # 再生回数を非公開にしている動画では省略される
    view_count: int | None = Field(default=None, alias="viewCount", ge=0)


class VideoItem(_Payload):
    id: str
    snippet: VideoSnippet
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)


class VideoListResponse(_Payload):
    """videos.list のレスポンス"""

    items: list[VideoItem] = Field(default_factory=list)


def _error_reasons(error: HttpError) -> set[str]:
    """HttpError のボディから errors[].reason を取り出す"""
    try:
        data = json.loads(error.content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return set()
    if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
        return set()
    return {
        err["reason"]
        for err in data["error"].get("errors", [])
        if isinstance(err, dict) and "reason" in err
    }


def is_quota_error(error: HttpError) -> bool:
    return error.resp.status == 403 and bool(_error_reasons(error) & QUOTA_REASONS)


class YouTubeDataAPIClient:
    """
    YouTube Data API v3 を使用した期間指定検索と詳細取得

    googleapiclient のリソースはスレッドセーフではないため、
    詳細取得のバッチ並列に備えてスレッドごとにリソースを作る。
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout_sec: int = 10,
        resource_factory: Callable[[], Any] | None = None,
    ):
        """
        Args:
            api_key: YouTube Data API キー
            api_url: APIのベースURL
            timeout_sec: 1リクエストのタイムアウト（秒）
            resource_factory: youtube リソースの生成関数（テスト用）
        """
        self.api_key = api_key
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.timeout_sec = timeout_sec
        self._resource_factory = resource_factory or self._build_resource
        self._local = threading.local()

    def _build_resource(self) -> Any:
        return build(
            "youtube",
            "v3",
            developerKey=self.api_key,
            http=httplib2.Http(timeout=self.timeout_sec),
            client_options={"api_endpoint": self.api_url},
            cache_discovery=False,
            static_discovery=True,
        )

    @property
    def youtube(self) -> Any:
        """現在のスレッド用の youtube リソース"""
        resource = getattr(self._local, "youtube", None)
        if resource is None:
            resource = self._resource_factory()
            self._local.youtube = resource
        return resource

    @trace_tool(name="youtube_search_window")
    def search_video_ids(
        self,
        published_after: datetime,
        published_before: datetime,
        max_results: int = 50,
    ) -> list[str]:
        """
        指定期間に公開された動画IDを取得

        Args:
            published_after: この日時以降に公開された動画のみ
            published_before: この日時以前に公開された動画のみ
            max_results: 最大取得件数（API上限は50）

        Returns:
            動画IDのリスト

        Raises:
            YouTubeAPIError: API呼び出しエラー
            QuotaExceededError: クォータ超過
            ResponseShapeError: レスポンス形式の不一致
        """
        search_params = {
            "part": "id",
            "type": "video",
            "maxResults": min(max_results, 50),  # API上限は50
            "publishedAfter": to_rfc3339(published_after),
            "publishedBefore": to_rfc3339(published_before),
        }
        logger.debug(
            f"[YouTube] search.list: {search_params['publishedAfter']} 〜 "
            f"{search_params['publishedBefore']}"
        )

        payload = self._execute(
            self.youtube.search().list(**search_params),
            label="search.list",
        )
        try:
            response = SearchListResponse.model_validate(payload)
        except ValidationError as e:
            raise ResponseShapeError(f"Unexpected search.list response: {e}") from e

        video_ids = [item.id.video_id for item in response.items]
        logger.info(f"[YouTube] 検索結果: {len(video_ids)}件の動画ID取得")
        return video_ids

    @trace_tool(name="youtube_video_details")
    def list_videos(self, video_ids: list[str]) -> list[VideoDetail]:
        """
        動画IDの詳細を取得

        Args:
            video_ids: 動画IDのリスト（最大50件）

        Returns:
            VideoDetailのリスト（削除済み・再生回数非公開の動画は含まれない）

        Raises:
            YouTubeAPIError: API呼び出しエラー
            QuotaExceededError: クォータ超過
            ResponseShapeError: レスポンス形式の不一致
        """
        if not video_ids:
            return []

        logger.debug(f"[YouTube] videos.list: {len(video_ids)}件")
        payload = self._execute(
            self.youtube.videos().list(
                id=",".join(video_ids),
                part="snippet,statistics,contentDetails",
            ),
            label="videos.list",
        )
        try:
            response = VideoListResponse.model_validate(payload)
        except ValidationError as e:
            raise ResponseShapeError(f"Unexpected videos.list response: {e}") from e

        details = []
        for item in response.items:
            if item.statistics.view_count is None:
                logger.debug(f"    除外: {item.id} (再生回数非公開)")
                continue
            details.append(
                VideoDetail(
                    id=item.id,
                    title=item.snippet.title,
                    description=item.snippet.description,
                    thumbnail_url=self._pick_thumbnail(item.snippet.thumbnails),
                    published_at=item.snippet.published_at,
                    view_count=item.statistics.view_count,
                    channel_title=item.snippet.channel_title,
                )
            )

        logger.info(f"[YouTube] 詳細取得: {len(details)}/{len(video_ids)}件")
        return details

    def _pick_thumbnail(self, thumbnails: dict[str, Thumbnail]) -> str:
        for key in THUMBNAIL_PREFERENCE:
            if key in thumbnails:
                return thumbnails[key].url
        return ""

    def _execute(self, request: Any, label: str) -> dict[str, Any]:
        """リクエストを実行し、エラーをドメイン例外に変換"""
        try:
            return self._execute_with_retry(request)
        except HttpError as e:
            if is_quota_error(e):
                logger.error(f"[YouTube] クォータ超過 ({label}): {e}")
                raise QuotaExceededError(f"YouTube API quota exceeded: {e}") from e
            logger.error(f"[YouTube] API エラー ({label}): {e}")
            raise YouTubeAPIError(f"YouTube API error: {e}") from e
        except (OSError, httplib2.HttpLib2Error) as e:
            logger.error(f"[YouTube] 通信エラー ({label}): {e}")
            raise YouTubeAPIError(f"YouTube API connection error: {e}") from e

    @api_retry
    def _execute_with_retry(self, request: Any) -> dict[str, Any]:
        return request.execute()
