# Use Cases
from rare_finder.application.usecases.find_rare_videos import (
    FindRareVideosConfig,
    FindRareVideosUseCase,
    SearchErrorKind,
    SearchPhase,
    SearchState,
)
from rare_finder.application.usecases.video_lookup import (
    VideoLookup,
    VideoLookupConfig,
)

__all__ = [
    "FindRareVideosUseCase",
    "FindRareVideosConfig",
    "SearchState",
    "SearchPhase",
    "SearchErrorKind",
    "VideoLookup",
    "VideoLookupConfig",
]
