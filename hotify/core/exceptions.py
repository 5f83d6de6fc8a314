"""Errors raised by the hotify API client."""


class HotifyError(Exception):
    """Base class for all API client failures."""


class TransportFailure(HotifyError):
    """The request never completed (connection refused, timeout, ...)."""


class UnexpectedStatus(HotifyError):
    """The server answered with a non-2xx status.

    Attributes:
        status: HTTP status code
        body: Raw response body, kept verbatim for display
    """

    def __init__(self, status: int, body: str):
        super().__init__(f"Unexpected status code: {status}, body: {body}")
        self.status = status
        self.body = body


class DecodeFailure(HotifyError):
    """A successful response did not contain the expected JSON."""
