"""Save and load snapshots through a key/value store.

The source text is split into chunks no longer than the store's value limit.
Writes are not atomic across keys, so a reader can observe a mix of two
saves; the stored digest detects that and the snapshot is ignored.
"""

import base64
import binascii
import logging
import random

from tlds.errors import CorruptedPersistedData, PersistenceFailure
from tlds.snapshot import Snapshot, build_snapshot, from_millis, to_millis
from tlds.store import KeyValueStore

logger = logging.getLogger(__name__)

NAMESPACE = "tlds."
KEY_NUM_CHUNKS = NAMESPACE + "source.num_chunks"
KEY_CHUNK_PREFIX = NAMESPACE + "source."
KEY_LAST_UPDATED_TIME = NAMESPACE + "last_updated_time"
KEY_LAST_UPDATE_SUCCESSFUL = NAMESPACE + "last_update_successful"
KEY_LAST_SUCCESSFUL_UPDATE_TIME = NAMESPACE + "last_successful_update_time"
KEY_MD5SUM = NAMESPACE + "md5sum"


def _chunks(source: str, size: int) -> list[str]:
    return [source[pos : pos + size] for pos in range(0, len(source), size)]


def save_snapshot(store: KeyValueStore, snapshot: Snapshot) -> None:
    """Write ``snapshot`` to ``store`` and flush it.

    Raises:
        PersistenceFailure: If the store rejects a value or cannot flush.
    """
    logger.debug("Saving snapshot fetched at %s", snapshot.fetched_at.isoformat())
    try:
        chunks = _chunks(snapshot.source, store.max_value_length)
        for i, chunk in enumerate(chunks):
            store.put(f"{KEY_CHUNK_PREFIX}{i}", chunk)
        store.put(KEY_NUM_CHUNKS, str(len(chunks)))
        store.put(KEY_LAST_UPDATED_TIME, str(to_millis(snapshot.fetched_at)))
        store.put(KEY_LAST_UPDATE_SUCCESSFUL, "true" if snapshot.last_fetch_succeeded else "false")
        store.put(KEY_LAST_SUCCESSFUL_UPDATE_TIME, str(to_millis(snapshot.last_success_at)))
        store.put(KEY_MD5SUM, base64.b64encode(snapshot.digest).decode("ascii"))
        logger.debug("Flushing store")
        store.flush()
    except (OSError, ValueError) as e:
        raise PersistenceFailure(f"Unable to save snapshot: {e}") from e


def _parse_millis(key: str, raw: str | None) -> int:
    if raw is None:
        raise CorruptedPersistedData(f"Incomplete data in store, missing {key}")
    try:
        return int(raw)
    except ValueError:
        raise CorruptedPersistedData(f"Invalid value for {key}: {raw!r}") from None


def _read_snapshot(store: KeyValueStore, rng: random.Random | None) -> Snapshot | None:
    """Read a snapshot, returning None when nothing has been stored.

    Raises:
        CorruptedPersistedData: If the stored data is partial or inconsistent.
    """
    raw_chunks = store.get(KEY_NUM_CHUNKS)
    if raw_chunks is None:
        logger.debug("No snapshot in store")
        return None
    try:
        num_chunks = int(raw_chunks)
    except ValueError:
        raise CorruptedPersistedData(f"Invalid chunk count: {raw_chunks!r}") from None
    if num_chunks < 0:
        raise CorruptedPersistedData(f"Invalid chunk count: {num_chunks}")

    parts: list[str] = []
    for i in range(num_chunks):
        chunk = store.get(f"{KEY_CHUNK_PREFIX}{i}")
        if chunk is None:
            raise CorruptedPersistedData(f"Chunk missing: {i}")
        parts.append(chunk)
    source = "".join(parts)

    last_updated = _parse_millis(KEY_LAST_UPDATED_TIME, store.get(KEY_LAST_UPDATED_TIME))
    last_success = _parse_millis(
        KEY_LAST_SUCCESSFUL_UPDATE_TIME, store.get(KEY_LAST_SUCCESSFUL_UPDATE_TIME)
    )
    succeeded = store.get(KEY_LAST_UPDATE_SUCCESSFUL) == "true"

    raw_digest = store.get(KEY_MD5SUM)
    if raw_digest is None:
        raise CorruptedPersistedData(f"Incomplete data in store, missing {KEY_MD5SUM}")
    try:
        digest = base64.b64decode(raw_digest, validate=True)
    except binascii.Error:
        raise CorruptedPersistedData(f"Invalid digest: {raw_digest!r}") from None

    try:
        snapshot = build_snapshot(
            source,
            from_millis(last_updated),
            is_bootstrap=False,
            last_fetch_succeeded=succeeded,
            last_success_at=from_millis(last_success),
            rng=rng,
        )
    except OverflowError:
        raise CorruptedPersistedData("Stored timestamps are out of range") from None
    if snapshot.digest != digest:
        raise CorruptedPersistedData("md5sum mismatch")
    return snapshot


def load_snapshot(store: KeyValueStore, rng: random.Random | None = None) -> Snapshot | None:
    """Load the last stored snapshot, possibly saved by another process.

    Returns None when nothing usable is stored: absent, partial or
    inconsistent data, or an unreadable store.
    """
    logger.debug("Loading snapshot from store")
    try:
        snapshot = _read_snapshot(store, rng)
    except CorruptedPersistedData as e:
        logger.warning("Unable to load top level domains from store, ignoring: %s", e)
        return None
    except (OSError, ValueError) as e:
        logger.error("Unable to read top level domains store: %s", e)
        return None
    if snapshot is not None:
        logger.debug("Loaded snapshot fetched at %s", snapshot.fetched_at.isoformat())
    return snapshot
