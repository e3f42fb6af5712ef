import io
import random
from datetime import UTC, datetime, timedelta

import pytest
from rich.console import Console

from tlds.cache import TopLevelDomainCache
from tlds.snapshot import Snapshot, build_snapshot
from tlds.store import MemoryStore

BOOTSTRAP_AT = datetime(2021, 7, 4, 7, 7, 1, tzinfo=UTC)
BOOTSTRAP_TEXT = """\
# Version 2021070400, Last Updated Sun Jul  4 07:07:01 2021 UTC
AAA
COM
NET
ORG
"""


def _capture_console() -> tuple[Console, io.StringIO]:
    """Create a Console that writes to a StringIO for test capturing."""
    buf = io.StringIO()
    return Console(file=buf, force_terminal=True, width=120), buf


class FakeClock:
    """Manually advanced replacement for the cache's clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_bootstrap() -> Snapshot:
    return build_snapshot(
        BOOTSTRAP_TEXT,
        BOOTSTRAP_AT,
        is_bootstrap=True,
        last_fetch_succeeded=True,
        last_success_at=BOOTSTRAP_AT,
        rng=random.Random(0),
    )


@pytest.fixture
def clock():
    # Inside the bootstrap snapshot's refresh window.
    return FakeClock(BOOTSTRAP_AT + timedelta(days=1))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_cache(store, clock):
    """Factory for caches with an in-memory store, fake clock and small bootstrap."""
    caches: list[TopLevelDomainCache] = []

    def _make(fetcher, **kwargs) -> TopLevelDomainCache:
        kwargs.setdefault("store", store)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("bootstrap", make_bootstrap)
        kwargs.setdefault("rng", random.Random(1))
        cache = TopLevelDomainCache(fetcher=fetcher, **kwargs)
        caches.append(cache)
        return cache

    yield _make

    for cache in caches:
        cache.close()
