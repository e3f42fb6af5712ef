"""Key/value stores used to persist snapshots between processes."""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

# Per-entry limit; longer source text is split into chunks.
MAX_VALUE_LENGTH = 8 * 1024
# Smallest limit that still fits every metadata value (epoch ms, md5sum).
MIN_VALUE_LENGTH = 32


class KeyValueStore(Protocol):
    """String key/value storage with a per-value size limit.

    Writes are buffered until ``flush``; a flush need not be atomic with
    respect to other processes reading the same store.
    """

    max_value_length: int

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def flush(self) -> None: ...


def _check_length(key: str, value: str, limit: int) -> None:
    if len(value) > limit:
        raise ValueError(f"Value for '{key}' is {len(value)} characters, limit is {limit}")


def _check_limit(max_value_length: int) -> int:
    if max_value_length < MIN_VALUE_LENGTH:
        raise ValueError(
            f"max_value_length must be at least {MIN_VALUE_LENGTH}, got {max_value_length}"
        )
    return max_value_length


class MemoryStore:
    """In-process store, shared by every cache given the same instance."""

    def __init__(self, max_value_length: int = MAX_VALUE_LENGTH):
        self.max_value_length = _check_limit(max_value_length)
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: str) -> None:
        _check_length(key, value, self.max_value_length)
        with self._lock:
            self._entries[key] = value

    def flush(self) -> None:
        pass

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)


class FileStore:
    """A JSON document on disk holding string values.

    ``get`` always reads the most recently flushed document so values written
    by other processes become visible. ``flush`` merges pending writes into
    the document and replaces the file in one ``os.replace``.
    """

    def __init__(self, path: Path, max_value_length: int = MAX_VALUE_LENGTH):
        self.path = Path(path)
        self.max_value_length = _check_limit(max_value_length)
        self._pending: dict[str, str] = {}
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        """Load the flushed document; a missing file is an empty store.

        Raises:
            OSError: If the file exists but cannot be read.
            ValueError: If the file is not a JSON object of strings.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        with self._lock:
            if key in self._pending:
                return self._pending[key]
            return self._read().get(key)

    def put(self, key: str, value: str) -> None:
        _check_length(key, value, self.max_value_length)
        with self._lock:
            self._pending[key] = value

    def flush(self) -> None:
        with self._lock:
            if not self._pending:
                return
            try:
                entries = self._read()
            except ValueError:
                # Unreadable content is replaced rather than merged.
                entries = {}
            entries.update(self._pending)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entries, f, indent=2, sort_keys=True)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            self._pending.clear()
