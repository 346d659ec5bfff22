# Infrastructure Layer
from rare_finder.infrastructure.youtube_data_api import YouTubeDataAPIClient

__all__ = [
    "YouTubeDataAPIClient",
]
