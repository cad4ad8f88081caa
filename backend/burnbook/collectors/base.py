"""采集器基类"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class FetchedPost:
    """采集到的帖子/评论"""
    source_id: str
    subreddit: str
    url: str
    kind: str = "post"
    title: Optional[str] = None
    body: Optional[str] = None
    author: Optional[str] = None
    score: int = 0
    num_comments: int = 0
    created_at: Optional[datetime] = None


class BaseFetcher(ABC):
    """按URL抓取一个列表页的采集器基类"""

    platform_name: str = ""

    def __init__(self, config: Dict = None):
        self.config = config or {}

    @abstractmethod
    def is_supported_url(self, url: str) -> bool:
        pass

    @abstractmethod
    async def fetch(self, url: str) -> List[FetchedPost]:
        pass

    def clean_text(self, text: Optional[str]) -> Optional[str]:
        if not isinstance(text, str):
            return None
        text = text.strip()
        if not text or text in ("[deleted]", "[removed]"):
            return None
        return text
