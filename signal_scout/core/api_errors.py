"""
Standardized error classification for the scout pipeline.

Only a failed seed fetch is fatal. Every other error type here is raised
inside one stage and recovered by that stage:
- FetchError on a sub-page fetch: Bloodhound reverts to the seed page
- AgentResponseError: the agent contributes an empty result
"""

from typing import Optional, Dict, Any


class APIError(Exception):
    """
    Base exception for all scout errors.

    Attributes:
        message: Human-readable error description
        source: Component or host that produced the error
        status_code: HTTP status code if applicable
        response_data: Raw response data for debugging
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.status_code = status_code
        self.response_data = response_data

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.insert(0, f"[{self.source}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source": self.source,
            "status_code": self.status_code,
            "response_data": self.response_data,
        }


class FetchError(APIError):
    """
    A page could not be fetched.

    Examples:
    - DNS or connection failure
    - Non-2xx response
    - Deadline elapsed (see FetchTimeoutError)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, source=source, status_code=status_code)
        self.url = url


class NotFoundError(FetchError):
    """HTTP 404 for the requested page."""

    def __init__(
        self,
        message: str = "Page not found",
        url: Optional[str] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message=message, url=url, source=source, status_code=404)


class FetchTimeoutError(FetchError):
    """The shared fetch deadline elapsed before the page arrived."""

    def __init__(
        self,
        message: str = "Fetch deadline exceeded",
        url: Optional[str] = None,
        source: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(message=message, url=url, source=source)
        self.timeout = timeout


class AgentResponseError(APIError):
    """
    A completion came back empty or was not a JSON object.

    Always caught by the agent wrapper; never reaches the caller.
    """

    def __init__(
        self,
        message: str,
        agent: Optional[str] = None,
        raw_content: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            source=agent,
            response_data={"raw_content": (raw_content or "")[:500]},
        )
        self.agent = agent


class ConfigurationError(APIError):
    """
    Configuration error - missing required settings.

    Raised when no LLM API key is configured.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        missing_config: Optional[str] = None,
    ):
        super().__init__(message=message, source=source)
        self.missing_config = missing_config


STATUS_DESCRIPTIONS = {
    403: "Access forbidden",
    429: "Rate limited",
}


def classify_http_error(
    status_code: int, url: Optional[str] = None, source: Optional[str] = None
) -> FetchError:
    """
    Map a non-2xx status to a FetchError.

    404 maps to NotFoundError; every other status is a plain FetchError
    carrying the status code.
    """
    if status_code == 404:
        return NotFoundError(message=f"Not found: {url}", url=url, source=source)

    if 500 <= status_code < 600:
        description = "Server error"
    else:
        description = STATUS_DESCRIPTIONS.get(status_code, f"HTTP error {status_code}")
    return FetchError(
        message=f"{description}: {url}",
        url=url,
        source=source,
        status_code=status_code,
    )
