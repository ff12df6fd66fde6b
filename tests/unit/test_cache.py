"""Unit tests for pubminer.utils.cache."""

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from pubminer.utils.cache import AbstractCache, AbstractCacheEntry


@pytest.fixture
def cache(tmp_path: Path) -> AbstractCache:
    return AbstractCache(tmp_path / "abstracts", ttl=100)


def _write_entry(cache: AbstractCache, record_id: str, **overrides) -> Path:
    entry = {
        "db": "pmc",
        "record_id": record_id,
        "sections": {"abstract": "cached"},
        "cached_at": datetime.now().isoformat(),
        "ttl": 100,
        **overrides,
    }
    path = cache.path_for(record_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entry))
    return path


def test_miss_returns_none(cache):
    assert cache.get("5858162") is None


def test_put_then_get(cache):
    sections = {"background": "b", "results": "r"}

    assert cache.put("5858162", sections) is True

    assert cache.get("5858162") == sections
    assert cache.get("6012345") is None


def test_put_creates_directory(cache):
    cache.put("5858162", {"abstract": "a"})

    assert cache.cache_dir.is_dir()


def test_expired_entry_is_removed(cache):
    stale = (datetime.now() - timedelta(seconds=200)).isoformat()
    path = _write_entry(cache, "5858162", cached_at=stale)

    assert cache.get("5858162") is None
    assert not path.exists()


@pytest.mark.parametrize(
    "overrides",
    [
        {"sections": {"abstract": ["not", "text"]}},
        {"sections": "plain string"},
        {"sections": None},
        {"cached_at": "yesterday"},
    ],
)
def test_mistyped_entry_is_discarded(cache, overrides):
    path = _write_entry(cache, "5858162", **overrides)

    assert cache.get("5858162") is None
    assert not path.exists()


def test_corrupt_file_is_discarded(cache):
    path = cache.path_for("5858162")
    path.parent.mkdir(parents=True)
    path.write_text("not valid json{{")

    assert cache.get("5858162") is None
    assert not path.exists()


def test_empty_sections_are_a_miss(cache):
    _write_entry(cache, "5858162", sections={})

    assert cache.get("5858162") is None


def test_entry_for_another_record_is_ignored(cache):
    path = _write_entry(cache, "5858162")
    other = json.loads(path.read_text())
    other["record_id"] = "6012345"
    path.write_text(json.dumps(other))

    assert cache.get("5858162") is None


def test_write_failure_is_not_fatal(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the cache dir should be")
    cache = AbstractCache(blocker)

    assert cache.put("5858162", {"abstract": "a"}) is False
    assert cache.get("5858162") is None


def test_keys_depend_on_database(tmp_path: Path):
    pmc = AbstractCache(tmp_path, db="pmc")
    pubmed = AbstractCache(tmp_path, db="pubmed")

    assert pmc.path_for("1") != pubmed.path_for("1")
    assert pmc.path_for("1") == AbstractCache(tmp_path).path_for("1")


def test_entry_expiry():
    fresh = AbstractCacheEntry(
        db="pmc", record_id="1", sections={"abstract": "a"}, cached_at=datetime.now()
    )
    old = fresh.model_copy(update={"cached_at": datetime.now() - timedelta(days=6)})

    assert not fresh.expired()
    assert old.expired()
