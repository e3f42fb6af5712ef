"""The bundled copy of the TLD list used when nothing newer is available."""

import logging
import random
from datetime import UTC, datetime
from importlib import resources

from tlds.config import DATA_ENCODING
from tlds.errors import MalformedData
from tlds.snapshot import Snapshot, build_snapshot

logger = logging.getLogger(__name__)

BOOTSTRAP_RESOURCE = "tlds-alpha-by-domain.txt"

# "Last Updated" line of the bundled file; update both together.
BOOTSTRAP_FETCHED_AT = datetime(2021, 7, 4, 7, 7, 1, tzinfo=UTC)


def read_bootstrap_source() -> str:
    try:
        return (
            resources.files("tlds")
            .joinpath("data", BOOTSTRAP_RESOURCE)
            .read_text(encoding=DATA_ENCODING)
        )
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedData(f"Unable to load bootstrap top level domains: {e}") from e


def load_bootstrap_snapshot(rng: random.Random | None = None) -> Snapshot:
    """Build a snapshot from the bundled list, stamped with its fetch date.

    Raises:
        MalformedData: If the bundled resource is missing or unreadable.
    """
    return build_snapshot(
        read_bootstrap_source(),
        BOOTSTRAP_FETCHED_AT,
        is_bootstrap=True,
        last_fetch_succeeded=True,
        last_success_at=BOOTSTRAP_FETCHED_AT,
        rng=rng,
    )
