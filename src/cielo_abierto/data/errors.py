"""Typed failures raised by the upstream client."""

from typing import Optional


class UpstreamError(Exception):
    """
    An upstream NASA endpoint answered with a non-2xx status.

    Parameters
    ----------
    message : str
        Human readable description
    status : int, optional
        HTTP status code, None when no response was received
    body : str, optional
        Response body (truncated)
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class TransportError(UpstreamError):
    """DNS, connection or timeout failure before any response arrived."""


class FormatError(UpstreamError):
    """
    The response was 2xx but not JSON.

    NASA's gateway serves HTML pages for rate limiting and outages while
    still answering 200.
    """
