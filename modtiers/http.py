"""
Resilient GET wrapper around a ``requests.Session``.

Retry policy:
  - 429: sleep ``Retry-After`` seconds (or the initial delay when absent or
    not numeric), then retry.
  - 5xx and transport errors (any ``requests.RequestException``): sleep ``initial_delay * 2 ** attempt``, then retry.
  - other 4xx: raise at once, no sleep.

``max_retries`` counts retries, so a call makes at most ``max_retries + 1``
requests. The sleep function is injectable so tests never wait.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from .config import ResolverContext
from .exceptions import (
    BadRequestError,
    ClientError,
    NetworkError,
    NotFoundError,
    ParseError,
    RetryExhaustedError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def _backoff(initial_delay: float, attempt: int) -> float:
    return initial_delay * (2 ** attempt)


def _retry_after(response: requests.Response, default: float) -> float:
    header = response.headers.get("Retry-After")
    if not header:
        return default
    try:
        return max(0.0, float(header))
    except ValueError:
        # HTTP-date form is not supported; fall back to the initial delay.
        return default


def _client_error(response: requests.Response, url: str) -> ClientError:
    code = response.status_code
    content = response.text[:500] if response.text else ""
    context = {"url": url}
    if code == 400:
        return BadRequestError(f"400 Bad Request: {content}", code, context=context, response=response)
    if code in (401, 403):
        return UnauthorizedError(f"{code} Unauthorized: {content}", code, context=context, response=response)
    if code == 404:
        return NotFoundError(f"404 Not Found: {url}", code, context=context, response=response)
    return ClientError(f"HTTP {code}: {content}", code, context=context, response=response)


class ResilientHttpClient:
    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if headers:
            self.session.headers.update(headers)

    @classmethod
    def from_context(cls, context: ResolverContext, **kwargs) -> "ResilientHttpClient":
        return cls(
            timeout=context.timeout,
            max_retries=context.max_retries,
            initial_delay=context.initial_delay,
            headers={"User-Agent": context.user_agent},
            **kwargs,
        )

    def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
    ) -> requests.Response:
        """GET ``url`` and return the successful response.

        Raises ClientError subclasses for non-retriable 4xx, RetryExhaustedError
        when 429/5xx outlast the retries, NetworkError for transport failures.
        """
        timeout = self.timeout if timeout is None else timeout
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay

        attempt = 0
        while True:
            try:
                response = self.session.get(url, headers=headers, params=params, timeout=timeout)
            except requests.RequestException as exc:
                if attempt >= retries:
                    raise NetworkError(
                        f"Transport error after {attempt + 1} attempts: {exc}", context={"url": url}
                    ) from exc
                wait = _backoff(delay, attempt)
                logger.debug("Network error on %s (attempt %d): %s; sleeping %.2fs", url, attempt + 1, exc, wait)
                self.sleep(wait)
                attempt += 1
                continue

            status = response.status_code
            if status < 400:
                return response

            if status == 429:
                wait = _retry_after(response, delay)
                if attempt >= retries:
                    break
                logger.warning("Rate limited by %s; waiting %s seconds before retrying", url, wait)
            elif status >= 500:
                wait = _backoff(delay, attempt)
                if attempt >= retries:
                    break
                logger.debug("Server error %s from %s; retrying after %.2fs", status, url, wait)
            else:
                raise _client_error(response, url)

            self.sleep(wait)
            attempt += 1

        raise RetryExhaustedError(
            f"Gave up on {url} after {attempt + 1} attempts (last status {status})",
            status,
            context={"url": url, "attempts": attempt + 1},
            response=response,
        )

    def get_json(self, url: str, **kwargs) -> Any:
        response = self.get(url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Malformed JSON from {url}: {exc}", context={"url": url}) from exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ResilientHttpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
