# Application Interfaces (Protocols)
from rare_finder.application.interfaces.youtube_video_api import YouTubeVideoAPI

__all__ = [
    "YouTubeVideoAPI",
]
