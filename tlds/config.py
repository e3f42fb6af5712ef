"""Settings for the TLD list source and local cache."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

IANA_TLD_URL = "https://data.iana.org/TLD/tlds-alpha-by-domain.txt"
DATA_ENCODING = "utf-8"
CACHE_DIR = Path.home() / ".cache" / "tlds"
STORE_FILENAME = "snapshot.json"
FETCH_TIMEOUT = 30.0

ENV_DATA_URL = "TLDS_DATA_URL"
ENV_CACHE_DIR = "TLDS_CACHE_DIR"
ENV_FETCH_TIMEOUT = "TLDS_FETCH_TIMEOUT"


@dataclass(frozen=True)
class Settings:
    data_url: str = IANA_TLD_URL
    cache_dir: Path = CACHE_DIR
    fetch_timeout: float = FETCH_TIMEOUT

    @property
    def store_path(self) -> Path:
        return self.cache_dir / STORE_FILENAME

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings, letting environment variables override the defaults.

        Args:
            env: Mapping to read instead of ``os.environ``.

        Raises:
            ValueError: If ``TLDS_FETCH_TIMEOUT`` is not a positive number.
        """
        mapping = env if env is not None else os.environ

        data_url = mapping.get(ENV_DATA_URL, "").strip() or IANA_TLD_URL

        cache_dir = CACHE_DIR
        raw_dir = mapping.get(ENV_CACHE_DIR, "").strip()
        if raw_dir:
            cache_dir = Path(raw_dir).expanduser()

        fetch_timeout = FETCH_TIMEOUT
        raw_timeout = mapping.get(ENV_FETCH_TIMEOUT, "").strip()
        if raw_timeout:
            try:
                fetch_timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(
                    f"{ENV_FETCH_TIMEOUT} must be a number, got '{raw_timeout}'"
                ) from None
            if fetch_timeout <= 0:
                raise ValueError(f"{ENV_FETCH_TIMEOUT} must be positive, got {fetch_timeout}")

        return cls(data_url=data_url, cache_dir=cache_dir, fetch_timeout=fetch_timeout)
