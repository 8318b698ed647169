import asyncio

from slackwatch.helpers import normalize_profile
from slackwatch.services.history import HistoryCrawler, HistoryQuery


def test_crawl_uses_cache_only(directory, cache, make_user):
    known = normalize_profile(make_user("U1"))
    cache.put("U1", known)
    directory.users["U2"] = make_user("U2")
    directory.history_response = {
        "ok": True,
        "messages": [
            {"user": "U1", "text": "hello", "ts": "1700000000.000001"},
            {"user": "U2", "text": "hi", "ts": "1700000000.000002"},
        ],
        "has_more": True,
        "response_metadata": {"next_cursor": "bmV4dA=="},
    }
    crawler = HistoryCrawler(directory, cache)

    page = asyncio.run(crawler.crawl("C1", HistoryQuery()))

    assert directory.count("get_user") == 0
    assert page["messages"][0] == {
        "user": known,
        "text": "hello",
        "timestamp": "1700000000.000001",
    }
    assert page["messages"][1]["user"]["id"] == "U2"
    assert page["messages"][1]["user"]["name"] == "Unknown"
    assert page["has_more"] is True
    assert page["next_cursor"] == "bmV4dA=="
    assert cache.get("U2") is None


def test_crawl_passes_filters_through(directory, cache):
    crawler = HistoryCrawler(directory, cache)
    query = HistoryQuery.from_params("5", "100.0", "200.0", "true", "abc")

    asyncio.run(crawler.crawl("C1", query))

    assert directory.calls == [
        (
            "history",
            {
                "channel": "C1",
                "limit": 5,
                "oldest": "100.0",
                "latest": "200.0",
                "inclusive": True,
                "cursor": "abc",
            },
        )
    ]


def test_crawl_defaults_for_missing_metadata(directory, cache):
    directory.history_response = {
        "messages": [{"bot_id": "B1", "text": "beep", "ts": "1.0"}],
        "response_metadata": {"next_cursor": ""},
    }
    crawler = HistoryCrawler(directory, cache)

    page = asyncio.run(crawler.crawl("C1", HistoryQuery()))

    assert page["has_more"] is False
    assert page["next_cursor"] is None
    assert page["messages"][0]["user"]["id"] is None
    assert page["messages"][0]["user"]["name"] == "Unknown"
