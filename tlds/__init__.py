"""Self-updating access to the IANA list of top-level domains.

The module-level accessors share one lazily created ``TopLevelDomainCache``
backed by a file store in the user's cache directory. Code that wants its
own store, fetcher or clock should build a ``TopLevelDomainCache`` directly
or install one with ``configure_default_cache``.
"""

import threading
from datetime import datetime

from tlds.cache import TopLevelDomainCache
from tlds.config import Settings
from tlds.fetcher import HttpFetcher
from tlds.snapshot import Snapshot
from tlds.store import FileStore

_default_cache: TopLevelDomainCache | None = None
_default_lock = threading.Lock()


def get_default_cache() -> TopLevelDomainCache:
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            settings = Settings.from_env()
            _default_cache = TopLevelDomainCache(
                FileStore(settings.store_path),
                HttpFetcher(settings),
            )
        return _default_cache


def configure_default_cache(cache: TopLevelDomainCache | None) -> None:
    """Replace the process-wide cache; None rebuilds it from settings on next use."""
    global _default_cache
    with _default_lock:
        _default_cache = cache


def get_snapshot() -> Snapshot:
    return get_default_cache().get_snapshot()


def get_top_level_domains() -> tuple[str, ...]:
    """All TLDs in the case and order of tlds-alpha-by-domain.txt."""
    return get_default_cache().get_top_level_domains()


def get_comments() -> tuple[str, ...]:
    return get_default_cache().get_comments()


def get_last_updated_time() -> datetime:
    return get_default_cache().get_last_updated_time()


def is_bootstrap() -> bool:
    return get_default_cache().is_bootstrap()


def get_last_update_successful() -> bool:
    return get_default_cache().get_last_update_successful()


def get_last_successful_update_time() -> datetime:
    return get_default_cache().get_last_successful_update_time()


def get_by_label(label: str) -> str | None:
    return get_default_cache().get_by_label(label)


__all__ = [
    "Snapshot",
    "TopLevelDomainCache",
    "configure_default_cache",
    "get_by_label",
    "get_comments",
    "get_default_cache",
    "get_last_successful_update_time",
    "get_last_update_successful",
    "get_last_updated_time",
    "get_snapshot",
    "get_top_level_domains",
    "is_bootstrap",
]
