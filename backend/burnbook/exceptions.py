"""业务异常定义

Fetch-level errors (InvalidUrl, RateLimited, FetchFailed, NoPostsFound) are
fatal to an ingestion job. ProviderUnavailable never leaves the capability
layer: the fallback implementation is used instead. PersistenceError is
scoped to the record that failed unless it prevents job creation.
"""
from typing import Optional


class BurnBookError(Exception):
    """所有业务异常的基类"""


class InvalidUrl(BurnBookError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(
            "Please enter a valid Reddit URL (e.g., https://reddit.com/r/ems/...)"
        )


class RateLimited(BurnBookError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__("Reddit API rate limit exceeded. Please try again later.")


class FetchFailed(BurnBookError):
    def __init__(self, status: Optional[int], reason: str = ""):
        self.status = status
        self.reason = reason
        if status is None:
            message = f"Failed to fetch Reddit data: {reason or 'network error'}"
        else:
            message = f"Failed to fetch Reddit data ({status}{': ' + reason if reason else ''})"
        super().__init__(message)


class NoPostsFound(BurnBookError):
    def __init__(self, url: str):
        self.url = url
        super().__init__("No posts found at the provided Reddit URL")


class ProviderUnavailable(BurnBookError):
    """远程能力提供方不可用（未配置、网络错误或响应无效）"""


class PersistenceError(BurnBookError):
    """数据库写入失败"""


class InvalidJobTransition(BurnBookError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid job transition: {current} -> {target}")


class OperationCancelled(BurnBookError):
    """调用方取消了正在进行的操作"""
