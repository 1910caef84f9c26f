"""Unit tests for the retrying source fetcher."""

from __future__ import annotations

import pytest
import requests

from core.errors import BankRankFetchError
from core.types import FetchOptions
from ingest.fetcher import SourceFetcher
from tests.http_fakes import FakeResponse, FakeSession, SleepRecorder

_SOURCE_URL = "https://example.test/lbr/current/"


def test_fetch_returns_document_on_first_success() -> None:
    """A 200 response with a body should be returned without retries."""
    session = FakeSession([FakeResponse(text="<table></table>")])
    sleep = SleepRecorder()
    fetcher = SourceFetcher(FetchOptions(), session=session, sleep=sleep)

    document = fetcher.fetch(_SOURCE_URL)

    assert document.text == "<table></table>" and document.status_code == 200
    assert len(session.calls) == 1 and sleep.delays == []


def test_fetch_exhausts_attempts_with_constant_delay() -> None:
    """Three failures should mean three attempts and two equal delays."""
    session = FakeSession([requests.ConnectionError("connection refused")])
    sleep = SleepRecorder()
    fetcher = SourceFetcher(
        FetchOptions(max_attempts=3, retry_delay_ms=5000), session=session, sleep=sleep
    )

    with pytest.raises(BankRankFetchError) as error_info:
        fetcher.fetch(_SOURCE_URL)

    assert len(session.calls) == 3
    assert sleep.delays == [5.0, 5.0]
    assert error_info.value.attempts == 3
    assert isinstance(error_info.value.last_error, requests.ConnectionError)


def test_fetch_retries_after_non_ok_status() -> None:
    """A non-200 status should count as a failed attempt."""
    session = FakeSession(
        [FakeResponse(status_code=503, text="busy"), FakeResponse(text="ranking")]
    )
    sleep = SleepRecorder()
    fetcher = SourceFetcher(FetchOptions(retry_delay_ms=10), session=session, sleep=sleep)

    document = fetcher.fetch(_SOURCE_URL)

    assert document.text == "ranking"
    assert sleep.delays == [0.01]


def test_fetch_treats_empty_body_as_failure() -> None:
    """An empty 200 response must never be returned as success."""
    session = FakeSession([FakeResponse(text="")])
    fetcher = SourceFetcher(
        FetchOptions(max_attempts=2, retry_delay_ms=0), session=session, sleep=SleepRecorder()
    )

    with pytest.raises(BankRankFetchError, match="Empty response body"):
        fetcher.fetch(_SOURCE_URL)

    assert len(session.calls) == 2


def test_fetch_single_attempt_never_sleeps() -> None:
    """With one attempt there is no inter-attempt delay."""
    session = FakeSession([requests.Timeout("timed out")])
    sleep = SleepRecorder()
    fetcher = SourceFetcher(FetchOptions(max_attempts=1), session=session, sleep=sleep)

    with pytest.raises(BankRankFetchError):
        fetcher.fetch(_SOURCE_URL)

    assert sleep.delays == []


def test_fetch_sends_timeout_and_user_agent() -> None:
    """Requests should carry the configured timeout and User-Agent."""
    session = FakeSession([FakeResponse(text="ok")])
    options = FetchOptions(request_timeout_ms=30000, user_agent="bankrank-test/1.0")
    fetcher = SourceFetcher(options, session=session, sleep=SleepRecorder())

    fetcher.fetch(_SOURCE_URL)

    call = session.calls[0]
    assert call["timeout"] == 30.0
    assert call["headers"] == {"User-Agent": "bankrank-test/1.0"}


def test_fetcher_rejects_zero_attempts() -> None:
    """At least one attempt must be configured."""
    with pytest.raises(ValueError):
        SourceFetcher(FetchOptions(max_attempts=0), session=FakeSession([FakeResponse()]))


def test_fetch_decodes_body_without_declared_charset() -> None:
    """Non-ASCII names survive when the server omits the charset."""
    html = "<table><tr><td>BANCO SANTANDER PUERTO RICO/SOCIÉTÉ GÉNÉRALE</td></tr></table>"
    session = FakeSession([FakeResponse(text=html, content_type="text/html")])
    fetcher = SourceFetcher(FetchOptions(), session=session, sleep=SleepRecorder())

    document = fetcher.fetch(_SOURCE_URL)

    assert "SOCIÉTÉ GÉNÉRALE" in document.text
    assert document.content_type == "text/html"


def test_fetch_keeps_declared_charset() -> None:
    """A charset sent by the server is used as-is."""
    session = FakeSession(
        [FakeResponse(text="CRÉDIT AGRICOLE", content_type="text/plain; charset=utf-8")]
    )
    fetcher = SourceFetcher(FetchOptions(), session=session, sleep=SleepRecorder())

    document = fetcher.fetch(_SOURCE_URL)

    assert document.text == "CRÉDIT AGRICOLE"
