"""Tests for the module-level accessors backed by the default cache."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

import tlds
from tlds.store import FileStore


@pytest.fixture
def default_cache(make_cache):
    cache = make_cache(MagicMock())
    tlds.configure_default_cache(cache)
    yield cache
    tlds.configure_default_cache(None)


def test_accessors_delegate_to_default_cache(default_cache):
    assert tlds.get_default_cache() is default_cache
    assert tlds.get_snapshot() is default_cache.get_snapshot()
    assert tlds.get_top_level_domains() == ("AAA", "COM", "NET", "ORG")
    assert tlds.get_comments()[0].startswith("# Version 2021070400")
    assert tlds.is_bootstrap() is True
    assert tlds.get_last_update_successful() is True
    assert tlds.get_last_updated_time() == tlds.get_last_successful_update_time()
    assert tlds.get_by_label("Com") == "COM"
    assert tlds.get_by_label("example") is None


def test_default_cache_built_from_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("TLDS_CACHE_DIR", str(tmp_path))
    tlds.configure_default_cache(None)
    cache = tlds.get_default_cache()
    try:
        assert tlds.get_default_cache() is cache
        assert isinstance(cache._store, FileStore)
        assert cache._store.path == tmp_path / "snapshot.json"
    finally:
        tlds.configure_default_cache(None)
        cache.close()
