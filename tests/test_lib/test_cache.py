"""Tests for the per-file token cache."""

from cssmodules.lib.cache import TokenCache


def test_normal_mode_returns_identical_mapping():
    cache = TokenCache()
    tokens = {"title": "_a__title"}
    cache.commit("/a.css", tokens)

    assert cache.get("/a.css") is tokens
    assert cache.get("/a.css") is cache.get("/a.css")
    assert "/a.css" in cache
    assert len(cache) == 1


def test_live_mode_commit_leaves_no_entry():
    cache = TokenCache(live=True)
    cache.put("/a.css", {"stale": "x"})
    cache.commit("/a.css", {"title": "_a__title"})

    assert cache.live is True
    assert cache.get("/a.css") is None
    assert "/a.css" not in cache


def test_invalidate_and_clear():
    cache = TokenCache()
    cache.put("/a.css", {})
    cache.put("/b.css", {})
    cache.invalidate("/a.css")
    cache.invalidate("/never-there.css")

    assert cache.get("/a.css") is None
    assert cache.get("/b.css") == {}
    cache.clear()
    assert len(cache) == 0
