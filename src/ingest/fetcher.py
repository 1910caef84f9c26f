"""Source document retrieval with bounded retries.

This module performs the HTTP GET against the ranking source and retries
failed attempts after a constant delay. It keeps no state between calls.
"""

from __future__ import annotations

from datetime import datetime, timezone
import time
from typing import Callable

import requests

from core.constants import HTTP_OK_STATUS
from core.errors import BankRankFetchError
from core.logging_config import get_logger
from core.types import FetchOptions, RawDocument

_LOGGER = get_logger(__name__)


class SourceFetcher:
    """HTTP fetcher with fixed-delay retry policy."""

    def __init__(
        self,
        options: FetchOptions,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create a fetcher.

        Args:
            options: Retry and transport settings.
            session: Optional HTTP session, created when omitted.
            sleep: Blocking pause function taking seconds.
        """
        if options.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if options.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be zero or positive")
        self._options = options
        self._session = session or requests.Session()
        self._sleep = sleep

    def fetch(self, source_url: str) -> RawDocument:
        """Retrieve the source document, retrying failed attempts.

        Args:
            source_url: URL of the ranking table.

        Returns:
            Fetched document with a non-empty body.

        Raises:
            BankRankFetchError: If every attempt failed.
        """
        max_attempts = self._options.max_attempts
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                return self._fetch_once(source_url)
            except (requests.RequestException, ValueError) as error:
                last_error = error
                _LOGGER.warning(
                    "fetch_attempt_failed",
                    source_url=source_url,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(error),
                )
            if attempt < max_attempts:
                self._sleep(self._options.retry_delay_ms / 1000)
        raise BankRankFetchError(
            f"Failed to fetch {source_url} after {max_attempts} attempts: {last_error}. "
            "Check network access and BANKRANK_SOURCE_URL, then retry.",
            attempts=max_attempts,
            last_error=last_error,
        ) from last_error

    def _fetch_once(self, source_url: str) -> RawDocument:
        """Run one GET and validate the response.

        Raises:
            requests.RequestException: On network failure or non-OK status.
            ValueError: If the response body is empty.
        """
        response = self._session.get(
            source_url,
            timeout=self._options.request_timeout_ms / 1000,
            headers={"User-Agent": self._options.user_agent},
        )
        if response.status_code != HTTP_OK_STATUS:
            raise requests.HTTPError(
                f"HTTP {response.status_code} for {source_url}", response=response
            )
        if "charset=" not in response.headers.get("Content-Type", "").lower():
            # requests assumes ISO-8859-1 for text/* without a declared charset.
            response.encoding = response.apparent_encoding
        body = response.text
        if not body:
            raise ValueError(f"Empty response body from {source_url}")
        _LOGGER.info(
            "fetch_succeeded",
            source_url=source_url,
            status_code=response.status_code,
            body_length=len(body),
        )
        return RawDocument(
            source_url=source_url,
            text=body,
            content_type=response.headers.get("Content-Type", ""),
            status_code=response.status_code,
            fetched_at=datetime.now(timezone.utc),
        )
