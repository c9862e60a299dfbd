"""
Price List REST Client

This module provides an async HTTP client for the remote price list.
It handles:
- HTTP requests with retry logic for rate limits and timeouts
- Error handling and logging
- Parsing the payload into PriceRecord objects

Response Format:
    [
      {"currency": "BLUR", "date": "2023-08-29T07:10:40.000Z", "price": 0.20811525423728813},
      {"currency": "ETH", "date": "2023-08-29T07:10:52.000Z", "price": 1645.9337373737374},
      ...
    ]

Failure Policy:
    - Non-2xx status: TransportError("Unable to retrieve live prices.")
    - Rate limited (429, 418, 503): retried with backoff, then the non-2xx
      error once attempts are exhausted
    - Timed out: retried with backoff, then TransportError("Unable to fetch token prices.")
    - Connection failure: TransportError("Unable to fetch token prices.")

Usage:
    async with PriceAPIClient() as client:
        records = await client.get_prices()
"""

import aiohttp
import asyncio
from typing import Any, List, Optional

from core.config import settings
from core.errors import TransportError, PRICES_UNAVAILABLE_MESSAGE, PRICES_UNREACHABLE_MESSAGE
from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import PriceRecord
from .normalizer import parse_price_records


RETRYABLE_STATUSES = (429, 418, 503)


class PriceAPIClient:
    """
    Async HTTP client for the remote price list

    Attributes:
        endpoint: URL of the JSON price list
        timeout: Total request timeout in seconds
        max_attempts: Attempts for rate-limited or timed-out requests
        session: aiohttp ClientSession for HTTP requests
        logger: Logger instance for debugging

    Example:
        >>> async with PriceAPIClient() as client:
        ...     records = await client.get_prices()
        ...     print(f"Fetched {len(records)} price records")

    Notes:
        - Uses context manager (or open()/close()) for session lifetime
        - open() and close() are idempotent, so a long-lived owner such as the
          feed controller can call them from its own lifecycle
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Initialize the price client.

        Args:
            endpoint: Price list URL (defaults to settings.price_endpoint)
            timeout: Request timeout in seconds (defaults to settings.request_timeout)
            max_attempts: Attempts per fetch (defaults to settings.request_max_attempts)
        """
        self.endpoint = endpoint or settings.price_endpoint
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.request_max_attempts)
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Session Management
    # ============================================

    async def open(self) -> None:
        """Create the HTTP session if it does not exist yet."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self.logger.debug("PriceAPIClient session created")

    async def close(self) -> None:
        """Close the HTTP session if one is open."""
        if self.session is not None:
            await self.session.close()
            self.session = None
            self.logger.debug("PriceAPIClient session closed")

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    async def _get(self) -> Any:
        """
        GET the price endpoint and decode the JSON body.

        Returns:
            Decoded JSON payload

        Raises:
            RuntimeError: If the session was not opened
            TransportError: If the request fails after all attempts

        Retry delay: 1.5s * attempt for rate limits, 1.0s * attempt for timeouts
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' or call open().")

        last_status: Optional[int] = None

        for attempt in range(1, self.max_attempts + 1):
            log_api_request("prices", self.endpoint, attempt)
            started = asyncio.get_running_loop().time()
            try:
                async with self.session.get(
                    self.endpoint,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    log_api_response(
                        "prices", self.endpoint, resp.status,
                        asyncio.get_running_loop().time() - started
                    )

                    if 200 <= resp.status < 300:
                        try:
                            return await resp.json(content_type=None)
                        except (aiohttp.ContentTypeError, ValueError) as e:
                            self.logger.error(f"Undecodable price payload from {self.endpoint}: {e}")
                            raise TransportError(PRICES_UNAVAILABLE_MESSAGE, status=resp.status) from e

                    last_status = resp.status

                    if resp.status in RETRYABLE_STATUSES and attempt < self.max_attempts:
                        delay = 1.5 * attempt
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {self.endpoint}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt}/{self.max_attempts})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    text = await resp.text()
                    self.logger.error(f"HTTP {resp.status} on {self.endpoint}: {text[:200]}")
                    raise TransportError(PRICES_UNAVAILABLE_MESSAGE, status=resp.status)

            except asyncio.TimeoutError as e:
                self.logger.error(f"Timeout on {self.endpoint} (attempt {attempt}/{self.max_attempts})")
                if attempt >= self.max_attempts:
                    raise TransportError(PRICES_UNREACHABLE_MESSAGE, status=last_status) from e
                await asyncio.sleep(1.0 * attempt)

            except aiohttp.ClientError as e:
                self.logger.error(f"Request failed on {self.endpoint}: {e}")
                raise TransportError(PRICES_UNREACHABLE_MESSAGE) from e

        # Only reachable when max_attempts retries all ended in "continue"
        raise TransportError(PRICES_UNAVAILABLE_MESSAGE, status=last_status)

    # ============================================
    # API Methods
    # ============================================

    async def get_prices(self) -> List[PriceRecord]:
        """
        Fetch the raw price list.

        Returns:
            List of PriceRecord in feed order (malformed items dropped)

        Raises:
            TransportError: On network failure, non-2xx status or a payload
                that is not a JSON array

        Example:
            >>> records = await client.get_prices()
            >>> print(records[0].currency, records[0].price)
        """
        self.logger.info(f"Fetching price list: {self.endpoint}")

        data = await self._get()

        if not isinstance(data, list):
            self.logger.error(f"Unexpected price payload type: {type(data).__name__}")
            raise TransportError(PRICES_UNAVAILABLE_MESSAGE)

        records = parse_price_records(data)
        self.logger.debug(f"Parsed {len(records)} price record(s)")
        return records
