"""
Exception hierarchy for the resolution engine.

Each error carries a human readable message, an optional code (HTTP status
where one exists) and an optional raw response for debugging. Callers branch
on the class: ``NotFoundError`` means the thing genuinely does not exist
upstream, ``TransientError`` means it might exist but could not be read.
"""

from typing import Any, Dict, Optional


class ModTiersError(Exception):
    """Base class for all library-specific exceptions."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[Any] = None,
    ):
        self.message = message
        self.code = code
        self.context = context or {}
        self.response = response
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code={self.code})"
        return self.message

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code!r} message={self.message!r}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(ModTiersError):
    """Invalid or unusable configuration. Fatal to the whole run."""


class HttpError(ModTiersError):
    """An upstream HTTP response with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, code=status_code, **kwargs)

    @property
    def status_code(self) -> Optional[int]:
        return self.code


class ClientError(HttpError):
    """4xx other than 429. Never retried."""


class BadRequestError(ClientError):
    """HTTP 400."""


class UnauthorizedError(ClientError):
    """HTTP 401/403 - missing or rejected credentials."""


class NotFoundError(ClientError):
    """The project, file or version does not exist upstream."""


class TransientError(ModTiersError):
    """The upstream could not be read right now (network, throttling, garbage)."""


class RetryExhaustedError(HttpError, TransientError):
    """HTTP 429/5xx persisted through every retry."""


class NetworkError(TransientError):
    """Connection failure or timeout persisted through every retry."""


class ParseError(TransientError):
    """Malformed upstream JSON or an unexpected payload shape."""


class ProviderUnavailableError(ModTiersError):
    """The provider cannot be used in this run (e.g. no API key configured)."""


class CacheMissError(ModTiersError):
    """No cached response while live fetching is disabled."""


class InvariantViolationError(ModTiersError):
    """A tier update would leave a record inconsistent."""


__all__ = [
    "ModTiersError",
    "ConfigError",
    "HttpError",
    "ClientError",
    "BadRequestError",
    "UnauthorizedError",
    "NotFoundError",
    "TransientError",
    "RetryExhaustedError",
    "NetworkError",
    "ParseError",
    "ProviderUnavailableError",
    "CacheMissError",
    "InvariantViolationError",
]
