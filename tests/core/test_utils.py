"""
Unit tests for handle_http_errors.

Google API failures of the two remote calls are translated into engine
errors; nothing is retried.
"""
import ssl

import pytest
from unittest.mock import MagicMock, Mock
from googleapiclient.errors import HttpError

from core.utils import handle_http_errors
from gdocs.errors import (
    ErrorCode,
    NotFoundError,
    OutOfBoundsError,
    RemoteUnavailableError,
    DocsErrorBuilder,
)


def make_http_error(status: int) -> HttpError:
    return HttpError(Mock(status=status, reason="error"), b'{}')


class FakeClient:
    """Minimal object with a decorated remote call."""

    def __init__(self, failure):
        self.failure = failure
        self.calls = MagicMock()

    @handle_http_errors("documents.get")
    async def fetch(self, document_id: str, fields: str = None):
        self.calls(document_id)
        if self.failure is not None:
            raise self.failure
        return {"documentId": document_id}


class TestHandleHttpErrors:
    """Tests for handle_http_errors."""

    @pytest.mark.asyncio
    async def test_success_passes_through(self):
        """Results are returned unchanged."""
        client = FakeClient(None)
        assert await client.fetch("doc-1") == {"documentId": "doc-1"}

    @pytest.mark.asyncio
    async def test_404_is_document_not_found(self):
        """A missing document is an expected NotFound outcome."""
        client = FakeClient(make_http_error(404))

        with pytest.raises(NotFoundError) as exc_info:
            await client.fetch("doc-404")

        error = exc_info.value
        assert error.code == ErrorCode.DOCUMENT_NOT_FOUND.value
        assert error.error.context.received == {"document_id": "doc-404"}
        assert isinstance(error.__cause__, HttpError)

    @pytest.mark.asyncio
    async def test_document_id_read_from_keyword(self):
        """The document ID is found whether passed by position or keyword."""
        client = FakeClient(make_http_error(404))

        with pytest.raises(NotFoundError) as exc_info:
            await client.fetch(document_id="doc-kw")

        assert "doc-kw" in str(exc_info.value)

    @pytest.mark.parametrize("status", [401, 403, 500, 503])
    @pytest.mark.asyncio
    async def test_other_statuses_are_remote_unavailable(self, status):
        """Auth and server failures are infrastructure errors carrying the status."""
        client = FakeClient(make_http_error(status))

        with pytest.raises(RemoteUnavailableError) as exc_info:
            await client.fetch("doc-1")

        assert exc_info.value.status_code == status
        assert exc_info.value.code == ErrorCode.REMOTE_UNAVAILABLE.value

    @pytest.mark.parametrize("failure", [
        ssl.SSLError("handshake failed"),
        ConnectionResetError("reset by peer"),
        TimeoutError("timed out"),
    ])
    @pytest.mark.asyncio
    async def test_network_failures_are_remote_unavailable(self, failure):
        """Transport failures have no status code."""
        client = FakeClient(failure)

        with pytest.raises(RemoteUnavailableError) as exc_info:
            await client.fetch("doc-1")

        assert exc_info.value.status_code is None
        assert exc_info.value.__cause__ is failure

    @pytest.mark.asyncio
    async def test_engine_errors_pass_through(self):
        """Engine errors are not re-wrapped."""
        original = OutOfBoundsError(DocsErrorBuilder.row_out_of_bounds(5, 1))
        client = FakeClient(original)

        with pytest.raises(OutOfBoundsError) as exc_info:
            await client.fetch("doc-1")

        assert exc_info.value is original

    @pytest.mark.asyncio
    async def test_no_retries(self):
        """A failing call is attempted exactly once."""
        client = FakeClient(make_http_error(503))

        with pytest.raises(RemoteUnavailableError):
            await client.fetch("doc-1")

        client.calls.assert_called_once_with("doc-1")

    def test_wrapper_keeps_metadata(self):
        """functools.wraps keeps the wrapped name."""
        assert FakeClient.fetch.__name__ == "fetch"
