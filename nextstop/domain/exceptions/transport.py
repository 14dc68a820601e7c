from __future__ import annotations


class TransportError(Exception):
    """Base exception for upstream HTTP failures."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class HttpError(TransportError):
    """Non-2xx response from the upstream provider."""

    def __init__(self, status_code: int, url: str, body: str | None = None) -> None:
        super().__init__(f"HTTP {status_code} from {url}", url)
        self.status_code = status_code
        self.body = body


class NetworkError(TransportError):
    """Connection-level failure (DNS, refused, reset...)."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Network error calling {url}{detail}", url)
        self.cause = cause


class UpstreamTimeoutError(TransportError):
    """An attempt exceeded its timeout and was cancelled."""

    def __init__(self, url: str, timeout_s: float) -> None:
        super().__init__(f"Request to {url} timed out after {timeout_s}s", url)
        self.timeout_s = timeout_s


class RequestFailedError(TransportError):
    """The request could not be completed (bad URL, undecodable body, redirect loop)."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Request to {url} failed{detail}", url)
        self.cause = cause
