"""Reddit数据采集器 - 通过公开的 .json 列表端点抓取"""
import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import requests

from burnbook.collectors.base import BaseFetcher, FetchedPost
from burnbook.config import get_settings
from burnbook.exceptions import FetchFailed, InvalidUrl, RateLimited

logger = logging.getLogger(__name__)

REDDIT_URL_PATTERN = re.compile(
    r"^https?://(?:www\.)?reddit\.com/"
    r"(?:"
    r"r/\w+/?"
    r"|r/\w+/comments/\w+(?:/[^?#]*)?"
    r"|user/[\w-]+(?:/[^?#]*)?"
    r")"
    r"(?:[?#].*)?$",
    re.IGNORECASE,
)

# t3 = 帖子, t1 = 评论
KIND_MAP = {"t3": "post", "t1": "comment"}


def validate_reddit_url(url: str) -> bool:
    """校验URL是否为社区页、帖子页或用户页"""
    if not isinstance(url, str):
        return False
    return bool(REDDIT_URL_PATTERN.match(url.strip()))


def to_json_url(url: str) -> str:
    """转换为结构化数据端点: 去掉查询串与末尾斜杠后追加 .json"""
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    if not path.endswith(".json"):
        path = f"{path}.json"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


class RedditFetcher(BaseFetcher):
    """Reddit列表抓取器

    支持三种URL: 社区 (/r/<name>)、帖子及评论 (/r/<name>/comments/<id>)、
    用户 (/user/<name>)。遇到 429 按 base_delay * 2^attempt 指数退避。
    """

    platform_name = "reddit"

    def __init__(self, config: dict = None):
        super().__init__(config)
        settings = get_settings()
        self.user_agent = self.config.get("user_agent", settings.reddit_user_agent)
        self.timeout = self.config.get("timeout", settings.reddit_timeout)
        self.max_retries = self.config.get("max_retries", settings.reddit_max_retries)
        self.base_delay = self.config.get("base_delay", settings.reddit_base_delay)

    def is_supported_url(self, url: str) -> bool:
        return validate_reddit_url(url)

    async def fetch(self, url: str) -> List[FetchedPost]:
        """抓取并解析为扁平、有序的帖子列表"""
        if not self.is_supported_url(url):
            raise InvalidUrl(url)

        json_url = to_json_url(url)
        data = await self._request_with_backoff(json_url)
        posts = self.parse_listing(data)
        logger.info(f"Reddit抓取完成: {json_url} -> {len(posts)} 条")
        return posts

    async def _request_with_backoff(self, json_url: str) -> Any:
        """带限速退避的请求

        首次请求之外最多重试 max_retries 次，仅对 429 重试。
        """
        headers = {"User-Agent": self.user_agent}
        params = {"raw_json": 1}

        for attempt in range(self.max_retries + 1):
            try:
                response = await asyncio.to_thread(
                    requests.get,
                    json_url,
                    headers=headers,
                    params=params,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Reddit请求异常: {type(e).__name__}: {e}")
                raise FetchFailed(None, f"{type(e).__name__}: {e}") from e

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    raise FetchFailed(200, "invalid JSON payload") from e

            if response.status_code == 429:
                if attempt < self.max_retries:
                    wait_time = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Reddit rate limit (429)，第{attempt + 1}/{self.max_retries}次重试，等待 {wait_time:.1f}s..."
                    )
                    await asyncio.sleep(wait_time)
                    continue
                logger.error(f"Reddit限速，{self.max_retries}次重试后放弃")
                raise RateLimited(attempt + 1)

            logger.warning(f"Reddit HTTP请求失败，状态码: {response.status_code}")
            raise FetchFailed(response.status_code, getattr(response, "reason", "") or "")

        raise RateLimited(self.max_retries + 1)

    def parse_listing(self, data: Any) -> List[FetchedPost]:
        """解析列表结构

        帖子页返回 [帖子listing, 评论listing] 数组，社区/用户页返回单个listing。
        无法识别的结构返回空列表。
        """
        posts: List[FetchedPost] = []
        if isinstance(data, list):
            for listing in data:
                self._collect_children(listing, posts)
        elif isinstance(data, dict):
            self._collect_children(data, posts)
        return posts

    def _collect_children(self, listing: Any, posts: List[FetchedPost]) -> None:
        if not isinstance(listing, dict):
            return
        listing_data = listing.get("data")
        if not isinstance(listing_data, dict):
            return
        children = listing_data.get("children")
        if not isinstance(children, list):
            return

        for child in children:
            if not isinstance(child, dict):
                continue
            kind = KIND_MAP.get(child.get("kind"))
            child_data = child.get("data")
            if kind is None or not isinstance(child_data, dict):
                continue

            post = self._parse_child(child_data, kind)
            if post:
                posts.append(post)

            # 评论的嵌套回复按深度优先展开在父评论之后
            replies = child_data.get("replies")
            if isinstance(replies, dict):
                self._collect_children(replies, posts)

    def _parse_child(self, data: Dict, kind: str) -> Optional[FetchedPost]:
        source_id = data.get("id")
        if not source_id or not isinstance(source_id, (str, int)):
            return None

        subreddit = _as_str(data.get("subreddit")) or ""
        permalink = _as_str(data.get("permalink"))
        if permalink:
            url = f"https://reddit.com{permalink}"
        else:
            url = f"https://reddit.com/r/{subreddit}/comments/{source_id}"

        body = data.get("selftext") if kind == "post" else data.get("body")

        return FetchedPost(
            source_id=str(source_id),
            subreddit=subreddit,
            url=url,
            kind=kind,
            title=self.clean_text(data.get("title")),
            body=self.clean_text(body),
            author=_as_str(data.get("author")),
            score=_as_int(data.get("score")),
            num_comments=_as_int(data.get("num_comments")),
            created_at=_parse_created(data.get("created_utc")),
        )


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_created(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc).replace(tzinfo=None)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
