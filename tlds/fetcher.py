"""Download the IANA TLD list."""

import logging

import httpx

from tlds.config import DATA_ENCODING, FETCH_TIMEOUT, IANA_TLD_URL, Settings
from tlds.errors import TransientFetchFailure

logger = logging.getLogger(__name__)


def decode_body(response: httpx.Response) -> str:
    """Decode the body using the charset from Content-Type, defaulting to UTF-8."""
    encoding = response.charset_encoding
    if encoding is None:
        logger.debug("Did not get encoding, assuming encoding: %s", DATA_ENCODING)
        encoding = DATA_ENCODING
    else:
        logger.debug("Got encoding: %s", encoding)
    return response.content.decode(encoding)


def fetch_source(
    url: str = IANA_TLD_URL,
    *,
    timeout: float = FETCH_TIMEOUT,
    client: httpx.Client | None = None,
) -> str:
    """Fetch the raw TLD list text.

    Args:
        url: Location of the newline-delimited TLD list.
        timeout: Seconds allowed for the request.
        client: Optional client to send the request with (used in testing).

    Raises:
        TransientFetchFailure: On any network, HTTP status or decoding error.
    """
    logger.debug("Connecting to %s", url)
    try:
        if client is None:
            response = httpx.get(url, follow_redirects=True, timeout=timeout)
        else:
            response = client.get(url, follow_redirects=True, timeout=timeout)
        response.raise_for_status()
        return decode_body(response)
    except httpx.HTTPError as e:
        raise TransientFetchFailure(f"Unable to fetch {url}: {e}") from e
    except (UnicodeDecodeError, LookupError) as e:
        raise TransientFetchFailure(f"Unable to decode {url}: {e}") from e


class HttpFetcher:
    """Callable fetcher bound to the configured URL and timeout."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self.client = client

    def __call__(self) -> str:
        return fetch_source(
            self.settings.data_url,
            timeout=self.settings.fetch_timeout,
            client=self.client,
        )
