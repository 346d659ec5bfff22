# Domain Layer
from rare_finder.domain.entities import (
    ApiUsageStats,
    ApiUsageStatsSnapshot,
    TimeWindow,
    VideoDetail,
)
from rare_finder.domain.exceptions import (
    QuotaExceededError,
    RareFinderError,
    RareVideoNotFoundError,
    ResponseShapeError,
    YouTubeAPIError,
)

__all__ = [
    "TimeWindow",
    "VideoDetail",
    "ApiUsageStats",
    "ApiUsageStatsSnapshot",
    "RareFinderError",
    "YouTubeAPIError",
    "QuotaExceededError",
    "ResponseShapeError",
    "RareVideoNotFoundError",
]
