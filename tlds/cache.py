"""The process-wide TLD snapshot cache and its background refresh."""

import logging
import random
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial

from tlds.bootstrap import load_bootstrap_snapshot
from tlds.errors import PersistenceFailure, TransientFetchFailure
from tlds.persistence import load_snapshot, save_snapshot
from tlds.snapshot import Snapshot, build_snapshot
from tlds.store import KeyValueStore

logger = logging.getLogger(__name__)

Fetcher = Callable[[], str]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one fetch attempt: either the fetched text or the error."""

    text: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class TopLevelDomainCache:
    """Holds the current snapshot and keeps it fresh in the background.

    The first call to ``get_snapshot`` loads the stored snapshot, or the
    bundled one when nothing newer is stored. After that the current
    snapshot is only ever replaced, never modified. Reads never wait on the
    network: when a refresh is due it is handed to a single worker thread and
    the current snapshot is returned immediately.
    """

    def __init__(
        self,
        store: KeyValueStore,
        fetcher: Fetcher,
        *,
        clock: Clock = _utcnow,
        bootstrap: Callable[[], Snapshot] | None = None,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._fetcher = fetcher
        self._clock = clock
        self._rng = rng
        self._bootstrap = bootstrap or partial(load_bootstrap_snapshot, rng)

        self._condition = threading.Condition()
        self._current: Snapshot | None = None
        self._refresh: Future | None = None
        self._last_refresh: RefreshResult | None = None
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tlds-refresh")

    def __enter__(self) -> "TopLevelDomainCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def refresh_in_flight(self) -> bool:
        with self._condition:
            return self._refresh is not None

    @property
    def last_refresh(self) -> RefreshResult | None:
        """Outcome of the most recent background refresh, None before the first one."""
        with self._condition:
            return self._last_refresh

    def _load_initial(self) -> Snapshot:
        snapshot = load_snapshot(self._store, self._rng)
        # The bundled snapshot's own fetch time is the cutoff for stored data.
        bootstrap = self._bootstrap()
        if snapshot is None:
            logger.info(
                "Update not found in store, using bundled bootstrap dated %s",
                bootstrap.fetched_at.isoformat(),
            )
            return bootstrap
        if snapshot.last_success_at < bootstrap.fetched_at:
            logger.info(
                "Update from store dated %s is older than bundled bootstrap dated %s, "
                "using bundled bootstrap instead",
                snapshot.last_success_at.isoformat(),
                bootstrap.fetched_at.isoformat(),
            )
            return bootstrap
        logger.debug("Successfully loaded from store")
        return snapshot

    def get_snapshot(self) -> Snapshot:
        """Return the current snapshot, scheduling a background refresh when due."""
        with self._condition:
            if self._current is None:
                self._current = self._load_initial()

            if self._refresh is None and not self._closed:
                now = self._clock()
                current = self._current
                if current.is_due(now):
                    logger.debug(
                        "Time for background update: now=%s not_before=%s not_after=%s",
                        now.isoformat(),
                        current.next_refresh_not_before.isoformat(),
                        current.next_refresh_not_after.isoformat(),
                    )
                    # Another process may already have refreshed the store.
                    reloaded = load_snapshot(self._store, self._rng)
                    if (
                        reloaded is not None
                        and reloaded.fetched_at != current.fetched_at
                        and reloaded.is_current(now)
                    ):
                        logger.debug("Update from store is current, using it instead of refreshing")
                        self._current = reloaded
                    else:
                        logger.debug("Scheduling background update")
                        self._refresh = self._executor.submit(self._refresh_task, now)

            return self._current

    def _fetch(self) -> RefreshResult:
        try:
            return RefreshResult(text=self._fetcher())
        except TransientFetchFailure as e:
            logger.error("Unable to load new snapshot: %s", e)
            return RefreshResult(error=e)
        except Exception as e:
            logger.exception("Unable to load new snapshot")
            return RefreshResult(error=e)

    def _persist(self, snapshot: Snapshot) -> None:
        try:
            save_snapshot(self._store, snapshot)
        except PersistenceFailure:
            logger.exception("Unable to save new snapshot to store")

    def _record_failure(self, started_at: datetime) -> None:
        """Keep the last known good list, marking this attempt as unsuccessful."""
        try:
            with self._condition:
                previous = self._current
                failed = build_snapshot(
                    previous.source,
                    started_at,
                    is_bootstrap=False,
                    last_fetch_succeeded=False,
                    last_success_at=previous.last_success_at,
                    rng=self._rng,
                )
                self._current = failed
                logger.debug("Saving failed update of top level domains to store")
                self._persist(failed)
        except Exception:
            logger.exception("Unable to update existing snapshot to unsuccessful")

    def _run_refresh(self, started_at: datetime) -> RefreshResult:
        result = self._fetch()
        if result.ok:
            try:
                loaded = build_snapshot(
                    result.text,
                    started_at,
                    is_bootstrap=False,
                    last_fetch_succeeded=True,
                    last_success_at=started_at,
                    rng=self._rng,
                )
            except Exception as e:
                logger.exception("Unable to build new snapshot")
                result = RefreshResult(error=e)
            else:
                with self._condition:
                    self._current = loaded
                    logger.debug("Saving updated top level domains to store")
                    self._persist(loaded)
                logger.info("Loaded %d top level domains", len(loaded.domains))
                return result
        self._record_failure(started_at)
        return result

    def _refresh_task(self, started_at: datetime) -> None:
        result = None
        try:
            result = self._run_refresh(started_at)
        except Exception as e:
            logger.exception("Background update failed")
            result = RefreshResult(error=e)
        finally:
            with self._condition:
                self._last_refresh = result
                self._refresh = None
                self._condition.notify_all()

    def wait_for_refresh(self, timeout: float | None = None) -> bool:
        """Block until no background refresh is running.

        Returns False if ``timeout`` seconds pass first.
        """
        with self._condition:
            if self._refresh is None:
                return True
            logger.info("Waiting for background update to complete")
            done = self._condition.wait_for(lambda: self._refresh is None, timeout)
            if done:
                logger.info("Background update completed")
            return done

    def close(self) -> None:
        """Let any running refresh finish and stop scheduling new ones."""
        self.wait_for_refresh()
        with self._condition:
            self._closed = True
        self._executor.shutdown(wait=True)

    def get_top_level_domains(self) -> tuple[str, ...]:
        return self.get_snapshot().domains

    def get_comments(self) -> tuple[str, ...]:
        return self.get_snapshot().comments

    def get_last_updated_time(self) -> datetime:
        return self.get_snapshot().fetched_at

    def is_bootstrap(self) -> bool:
        return self.get_snapshot().is_bootstrap

    def get_last_update_successful(self) -> bool:
        return self.get_snapshot().last_fetch_succeeded

    def get_last_successful_update_time(self) -> datetime:
        return self.get_snapshot().last_success_at

    def get_by_label(self, label: str) -> str | None:
        """Find a TLD case-insensitively, e.g. ``"com"`` returns ``"COM"``."""
        return self.get_snapshot().get_by_label(label)
