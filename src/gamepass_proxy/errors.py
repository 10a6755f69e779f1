"""Failures raised by the remote client.

Every outbound call either returns parsed JSON or raises a subclass of
:class:`UpstreamError`:

    * :class:`TransportError` - the request or body transfer failed (DNS,
      refused, reset, timeout, corrupt content encoding).
    * :class:`RemoteError` - the upstream answered with a non-success status.
    * :class:`ParseError` - the body could not be decoded as JSON.

The web layer maps any ``UpstreamError`` to an HTTP 500 with ``str(exc)`` as
the error message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class UpstreamError(Exception):
    """Base class for failures talking to the Roblox APIs."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "type": type(self).__name__, "url": self.url}


class TransportError(UpstreamError):
    """Connection or body-transfer failure (refused, reset, timeout, corrupt encoding)."""

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        if cause is None:
            detail = "connection failed"
        else:
            detail = str(cause) or type(cause).__name__
        super().__init__(f"Request to {url} failed: {detail}", url=url)
        self.cause = cause


class RemoteError(UpstreamError):
    """Upstream returned a non-success HTTP status.

    Attributes:
        status_code: HTTP status returned by the upstream.
        body: Raw response text, kept for diagnostics.
    """

    def __init__(self, url: str, status_code: int, body: str) -> None:
        super().__init__(f"API returned status {status_code}: {body}", url=url)
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class ParseError(UpstreamError):
    """Response body was not valid JSON."""

    def __init__(self, url: str, body: str) -> None:
        super().__init__(f"Failed to parse JSON response from {url}", url=url)
        self.body = body
