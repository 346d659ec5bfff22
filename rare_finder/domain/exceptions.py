"""ドメイン固有の例外定義"""


class RareFinderError(Exception):
    """基底例外クラス"""

    pass


class YouTubeAPIError(RareFinderError):
    """YouTube API 呼び出しの一時的なエラー（ネットワーク/HTTP）"""

    pass


class QuotaExceededError(RareFinderError):
    """YouTube API のクォータ超過"""

    pass


class ResponseShapeError(RareFinderError):
    """APIレスポンスの形式が想定と異なる"""

    pass


class RareVideoNotFoundError(RareFinderError):
    """探索の上限に達しても希少動画が見つからない"""

    pass
