"""数据采集器模块"""
from burnbook.collectors.base import BaseFetcher, FetchedPost
from burnbook.collectors.reddit import RedditFetcher, validate_reddit_url, to_json_url

__all__ = [
    "BaseFetcher",
    "FetchedPost",
    "RedditFetcher",
    "validate_reddit_url",
    "to_json_url",
]
