"""Reddit 抓取器测试：URL 校验、限速退避、列表解析"""
import asyncio

import pytest
import requests

from burnbook.collectors import RedditFetcher, to_json_url, validate_reddit_url
from burnbook.exceptions import FetchFailed, InvalidUrl, RateLimited
from fakes import FakeResponse


def listing(*children):
    return {"kind": "Listing", "data": {"children": list(children)}}


THREAD_PAYLOAD = [
    listing({
        "kind": "t3",
        "data": {
            "id": "abc123",
            "subreddit": "ems",
            "title": "Elite ePCR thoughts",
            "selftext": "Elite is great for charting",
            "author": "medic42",
            "score": 12,
            "num_comments": 2,
            "created_utc": 1700000000,
            "permalink": "/r/ems/comments/abc123/elite_epcr_thoughts/",
        },
    }),
    listing(
        {
            "kind": "t1",
            "data": {
                "id": "c1",
                "subreddit": "ems",
                "body": "Agreed, it works well",
                "author": "rn_jane",
                "score": 4,
                "replies": listing({
                    "kind": "t1",
                    "data": {"id": "c1a", "subreddit": "ems", "body": "[deleted]", "author": "[deleted]"},
                }),
            },
        },
        {"kind": "more", "data": {"id": "m1", "children": ["c9"]}},
        {"kind": "t1", "data": {"id": "c2", "subreddit": "ems", "body": "Offline mode is broken", "replies": ""}},
    ),
]


def fetcher(**config):
    config.setdefault("base_delay", 1.0)
    config.setdefault("max_retries", 3)
    return RedditFetcher(config=config)


def test_validate_reddit_url_accepts_three_shapes():
    assert validate_reddit_url("https://www.reddit.com/r/ems")
    assert validate_reddit_url("https://reddit.com/r/ems/")
    assert validate_reddit_url("http://www.reddit.com/r/ems/comments/abc123/some_title/")
    assert validate_reddit_url("https://www.reddit.com/user/medic42")
    assert validate_reddit_url("HTTPS://WWW.REDDIT.COM/R/EMS")


def test_validate_reddit_url_rejects_others():
    assert not validate_reddit_url("")
    assert not validate_reddit_url("https://example.com/r/ems")
    assert not validate_reddit_url("https://old.reddit.com/r/ems")
    assert not validate_reddit_url("https://www.reddit.com/")
    assert not validate_reddit_url("ftp://reddit.com/r/ems")
    assert not validate_reddit_url(None)


def test_to_json_url_strips_query_and_trailing_slash():
    assert to_json_url("https://www.reddit.com/r/ems/comments/abc123/title/?utm_source=x") == \
        "https://www.reddit.com/r/ems/comments/abc123/title.json"
    assert to_json_url("https://www.reddit.com/r/ems") == "https://www.reddit.com/r/ems.json"
    assert to_json_url("https://www.reddit.com/r/ems.json") == "https://www.reddit.com/r/ems.json"


def test_fetch_invalid_url_raises():
    with pytest.raises(InvalidUrl):
        asyncio.run(fetcher().fetch("https://example.com/r/ems"))


def test_fetch_thread_flattens_replies_depth_first(monkeypatch):
    captured = {}

    def fake_get(url, headers=None, params=None, timeout=None):
        captured.update(url=url, headers=headers, params=params, timeout=timeout)
        return FakeResponse(200, THREAD_PAYLOAD)

    monkeypatch.setattr(requests, "get", fake_get)
    posts = asyncio.run(fetcher(user_agent="BurnBookTest/1.0").fetch(
        "https://www.reddit.com/r/ems/comments/abc123/elite_epcr_thoughts/"
    ))

    assert captured["url"] == "https://www.reddit.com/r/ems/comments/abc123/elite_epcr_thoughts.json"
    assert captured["headers"]["User-Agent"] == "BurnBookTest/1.0"
    assert captured["params"] == {"raw_json": 1}

    assert [p.source_id for p in posts] == ["abc123", "c1", "c1a", "c2"]
    assert [p.kind for p in posts] == ["post", "comment", "comment", "comment"]

    post = posts[0]
    assert post.title == "Elite ePCR thoughts"
    assert post.body == "Elite is great for charting"
    assert post.url == "https://reddit.com/r/ems/comments/abc123/elite_epcr_thoughts/"
    assert post.score == 12
    assert post.created_at is not None

    assert posts[2].body is None
    assert posts[3].url == "https://reddit.com/r/ems/comments/c2"


def test_fetch_subreddit_single_listing(monkeypatch):
    payload = listing(
        {"kind": "t3", "data": {"id": "p1", "subreddit": "ems", "title": "One"}},
        {"kind": "t3", "data": {"id": "p2", "subreddit": "ems", "title": "Two"}},
    )
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(200, payload))

    posts = asyncio.run(fetcher().fetch("https://www.reddit.com/r/ems"))

    assert [p.source_id for p in posts] == ["p1", "p2"]


def test_malformed_payload_yields_empty_list():
    f = fetcher()
    assert f.parse_listing({"unexpected": True}) == []
    assert f.parse_listing("nope") == []
    assert f.parse_listing([{"data": {"children": "bad"}}]) == []
    assert f.parse_listing({"kind": "Listing", "data": ["x"]}) == []
    assert f.parse_listing([{"kind": "Listing", "data": "oops"}]) == []


def test_non_string_fields_are_ignored():
    payload = listing(
        {"kind": "t3", "data": {"id": "p1", "subreddit": "ems", "title": 5, "selftext": ["x"], "author": {"n": 1}}},
        {"kind": "t3", "data": {"id": {"bad": True}, "title": "dropped"}},
    )

    posts = fetcher().parse_listing(payload)

    assert [p.source_id for p in posts] == ["p1"]
    assert posts[0].title is None
    assert posts[0].body is None
    assert posts[0].author is None


def test_rate_limit_retries_with_exponential_backoff(monkeypatch):
    responses = [FakeResponse(429), FakeResponse(429), FakeResponse(429), FakeResponse(200, listing())]
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(requests, "get", lambda *a, **kw: responses.pop(0))
    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    posts = asyncio.run(fetcher().fetch("https://www.reddit.com/r/ems"))

    assert posts == []
    assert delays == [1.0, 2.0, 4.0]


def test_rate_limit_gives_up_after_three_retries(monkeypatch):
    calls = []

    async def fake_sleep(seconds):
        pass

    def fake_get(*args, **kwargs):
        calls.append(1)
        return FakeResponse(429)

    monkeypatch.setattr(requests, "get", fake_get)
    monkeypatch.setattr(asyncio, "sleep", fake_sleep)

    with pytest.raises(RateLimited):
        asyncio.run(fetcher().fetch("https://www.reddit.com/r/ems"))
    assert len(calls) == 4


def test_other_status_raises_fetch_failed(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(503, reason="Service Unavailable"))

    with pytest.raises(FetchFailed) as exc_info:
        asyncio.run(fetcher().fetch("https://www.reddit.com/r/ems"))
    assert exc_info.value.status == 503


def test_transport_error_raises_fetch_failed_without_status(monkeypatch):
    def fake_get(*args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", fake_get)

    with pytest.raises(FetchFailed) as exc_info:
        asyncio.run(fetcher().fetch("https://www.reddit.com/r/ems"))
    assert exc_info.value.status is None
    assert "connection refused" in str(exc_info.value)
