"""リトライ戦略"""

import httplib2
from googleapiclient.errors import HttpError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)


def is_transient_error(exc: BaseException) -> bool:
    """再試行する価値のあるエラーか（5xx / 接続系）"""
    if isinstance(exc, HttpError):
        return exc.resp.status >= 500
    return isinstance(exc, (ConnectionError, TimeoutError, httplib2.HttpLib2Error))


# API呼び出し用デコレータ（最後の例外をそのまま送出）
api_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception(is_transient_error),
    reraise=True,
)
