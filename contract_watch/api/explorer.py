"""
Block Explorer Client

Single responsibility: fetch the explorer page for the monitored contract
and turn it into a content-fingerprint observation.
"""

import asyncio
import hashlib
import logging
from typing import Optional, Tuple

import aiohttp

from ..config import Config, USER_AGENT
from ..errors import FetchError, UpstreamNotReadyError
from ..filters import extract_amounts
from ..models import Observation

logger = logging.getLogger(__name__)


def page_fingerprint(content: str, prefix_bytes: int) -> str:
    """
    Fingerprint of the first prefix_bytes of content.

    Returns:
        64-character hex digest; identical prefixes give identical values
    """
    prefix = content.encode("utf-8")[:prefix_bytes]
    return hashlib.sha256(prefix).hexdigest()


def decode_body(body: bytes, charset: Optional[str]) -> str:
    """Decode a response body; undecodable bytes become U+FFFD."""
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        # Unknown charset label in Content-Type
        return body.decode("utf-8", errors="replace")


class ExplorerClient:
    """
    Async client for a Blockscout-style explorer page.

    Handles:
    - Fetching the contract's address page
    - Classifying non-200 answers (not ready vs. failure)
    - Building the fingerprint observation
    """

    def __init__(self, config: Config):
        self.url = config.page_url
        self.timeout = config.http_timeout_sec
        self.not_ready_statuses = set(config.not_ready_statuses)
        self.prefix_bytes = config.fingerprint_prefix_bytes
        self.max_matches_per_pattern = config.max_matches_per_pattern
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Create session if needed."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self):
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _get(self, url: str) -> Tuple[int, str]:
        """
        GET a page.

        Returns:
            (status, body text)

        Raises:
            FetchError: On network errors and timeouts
        """
        await self._ensure_session()
        try:
            async with self._session.get(url) as response:
                body = await response.read()
                return response.status, decode_body(body, response.charset)
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}") from e
        except aiohttp.ClientError as e:
            raise FetchError(f"Request failed: {e}") from e

    # -------------------------------------------------------------------------
    # Public Methods
    # -------------------------------------------------------------------------

    async def fetch(self) -> Observation:
        """
        Fetch the explorer page and fingerprint it.

        Raises:
            UpstreamNotReadyError: Explorer answered with a "not ready" status
            FetchError: Any other non-200 answer or transport failure
        """
        logger.info(f"Checking contract activity at {self.url}")
        status, content = await self._get(self.url)

        if status in self.not_ready_statuses:
            raise UpstreamNotReadyError(f"Explorer not ready (HTTP {status})", status=status)
        if status != 200:
            raise FetchError(f"HTTP {status}", status=status)

        fingerprint = page_fingerprint(content, self.prefix_bytes)
        amounts = extract_amounts(content, self.max_matches_per_pattern)
        logger.debug(f"Page fingerprint {fingerprint[:12]}..., {len(amounts)} amount tokens")

        return Observation.fingerprint(
            value=fingerprint,
            content=content,
            extracted_amounts=amounts,
            source_url=self.url,
        )
