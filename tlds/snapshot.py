"""Parse TLD list text into immutable snapshots with digests and refresh windows."""

import hashlib
import logging
import random
import struct
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType

from tlds.config import DATA_ENCODING
from tlds.errors import MalformedData

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"

UPDATE_INTERVAL_SUCCESS_MIN = timedelta(days=7)
UPDATE_INTERVAL_SUCCESS_DEVIATION = timedelta(days=1)
UPDATE_INTERVAL_FAILURE_MIN = timedelta(days=1)
UPDATE_INTERVAL_FAILURE_DEVIATION = timedelta(hours=4)

# Seeded from os.urandom; jitter only needs to differ between processes.
_jitter_random = random.Random()


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to integer milliseconds since the epoch."""
    delta = moment - datetime(1970, 1, 1, tzinfo=UTC)
    return delta // timedelta(milliseconds=1)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime(1970, 1, 1, tzinfo=UTC) + timedelta(milliseconds=millis)


def truncate_to_millis(moment: datetime) -> datetime:
    return from_millis(to_millis(moment))


@dataclass(frozen=True)
class Snapshot:
    """One capture of the TLD list plus the metadata of the fetch that produced it."""

    source: str = field(repr=False)
    domains: tuple[str, ...] = field(repr=False)
    comments: tuple[str, ...] = field(repr=False)
    fetched_at: datetime
    is_bootstrap: bool
    last_fetch_succeeded: bool
    last_success_at: datetime
    digest: bytes
    next_refresh_not_before: datetime
    next_refresh_not_after: datetime
    lowercase_index: Mapping[str, str] = field(repr=False, compare=False)

    def is_due(self, now: datetime) -> bool:
        """True when ``now`` is outside the refresh window.

        A clock that has moved far into the past (at or before
        ``next_refresh_not_after``) also counts as due.
        """
        return now >= self.next_refresh_not_before or now <= self.next_refresh_not_after

    def is_current(self, now: datetime) -> bool:
        return self.next_refresh_not_after < now < self.next_refresh_not_before

    def get_by_label(self, label: str) -> str | None:
        """Look up a TLD case-insensitively, returning it in its original case."""
        return self.lowercase_index.get(label.lower())


def parse_source(text: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split TLD list text into (domains, comments), preserving order.

    Blank lines belong to neither sequence.
    """
    domains: list[str] = []
    comments: list[str] = []
    for line in text.splitlines():
        if not line:
            continue
        if line.startswith(COMMENT_PREFIX):
            comments.append(line)
        else:
            domains.append(line)
    return tuple(domains), tuple(comments)


def compute_digest(
    source: str,
    fetched_at: datetime,
    last_fetch_succeeded: bool,
    last_success_at: datetime,
) -> bytes:
    """MD5 over the source bytes followed by the big-endian fetch metadata.

    Used to detect inconsistent reads from the key/value store, not for security.

    Raises:
        MalformedData: If MD5 is not available in this interpreter.
    """
    payload = source.encode(DATA_ENCODING) + struct.pack(
        ">q?q",
        to_millis(fetched_at),
        last_fetch_succeeded,
        to_millis(last_success_at),
    )
    try:
        md5 = hashlib.md5(usedforsecurity=False)
    except ValueError as e:
        raise MalformedData("MD5 is not available in this interpreter") from e
    md5.update(payload)
    return md5.digest()


def _refresh_window(
    fetched_at: datetime,
    last_fetch_succeeded: bool,
    rng: random.Random,
) -> tuple[datetime, datetime]:
    if last_fetch_succeeded:
        base = UPDATE_INTERVAL_SUCCESS_MIN
        deviation = UPDATE_INTERVAL_SUCCESS_DEVIATION
    else:
        base = UPDATE_INTERVAL_FAILURE_MIN
        deviation = UPDATE_INTERVAL_FAILURE_DEVIATION
    jitter = timedelta(milliseconds=rng.randrange(deviation // timedelta(milliseconds=1)))
    not_before = fetched_at + base + jitter
    not_after = fetched_at - base - jitter
    logger.debug(
        "Refresh window: base=%s jitter=%s not_before=%s not_after=%s",
        base,
        jitter,
        not_before.isoformat(),
        not_after.isoformat(),
    )
    return not_before, not_after


def build_snapshot(
    source: str,
    fetched_at: datetime,
    *,
    is_bootstrap: bool,
    last_fetch_succeeded: bool,
    last_success_at: datetime,
    rng: random.Random | None = None,
) -> Snapshot:
    """Parse ``source`` and derive the digest, refresh window and lowercase index.

    Args:
        source: Raw TLD list text.
        fetched_at: When this attempt was made, successful or not.
        is_bootstrap: Whether the text came from the bundled copy.
        last_fetch_succeeded: Outcome of this attempt.
        last_success_at: When the list was last fetched successfully.
        rng: Random source for the refresh jitter.

    Raises:
        MalformedData: If the digest cannot be computed.
    """
    fetched_at = truncate_to_millis(fetched_at)
    last_success_at = truncate_to_millis(last_success_at)

    domains, comments = parse_source(source)

    index: dict[str, str] = {}
    for domain in domains:
        index[domain.lower()] = domain

    digest = compute_digest(source, fetched_at, last_fetch_succeeded, last_success_at)
    not_before, not_after = _refresh_window(fetched_at, last_fetch_succeeded, rng or _jitter_random)

    return Snapshot(
        source=source,
        domains=domains,
        comments=comments,
        fetched_at=fetched_at,
        is_bootstrap=is_bootstrap,
        last_fetch_succeeded=last_fetch_succeeded,
        last_success_at=last_success_at,
        digest=digest,
        next_refresh_not_before=not_before,
        next_refresh_not_after=not_after,
        lowercase_index=MappingProxyType(index),
    )
