"""Error types raised while loading, refreshing and persisting TLD snapshots."""


class TldError(Exception):
    """Base class for all tlds errors."""


class TransientFetchFailure(TldError):
    """The remote TLD list could not be fetched or decoded.

    Recorded in the snapshot as an unsuccessful update and retried on the
    next refresh window.
    """


class PersistenceFailure(TldError):
    """A snapshot could not be written to the key/value store."""


class CorruptedPersistedData(TldError):
    """Persisted snapshot data is incomplete or fails its digest check."""


class MalformedData(TldError):
    """A snapshot could not be constructed at all (missing hash primitive, missing bootstrap)."""
