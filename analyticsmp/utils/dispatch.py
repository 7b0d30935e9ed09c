import logging
from typing import Any, Mapping, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from ..errors import TransportError

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def post(self, url: str, data: Mapping[str, Any]) -> None: ...


class UrlFetchDispatcher:
    """Single form-encoded POST. Any failure is raised as TransportError."""

    def __init__(self, timeout: float = 5):
        self.timeout = timeout

    def post(self, url: str, data: Mapping[str, Any]) -> None:
        request = Request(
            url,
            data=urlencode(data).encode("utf-8"),
            method="POST",
        )

        try:
            with urlopen(request, timeout=self.timeout):
                pass
        except HTTPError as exc:
            raise TransportError(f"Collect request failed: HTTP {exc.code}", status=exc.code) from exc
        except (URLError, OSError) as exc:
            raise TransportError(f"Collect request failed: {exc}") from exc

        logger.debug("Sent %s hit to %s", data.get("t"), url)


class BackoffDispatcher:
    """Retries another dispatcher with jittered exponential backoff."""

    def __init__(self, inner: Dispatcher, *, max_attempts: int = 5, max_wait: float = 32, multiplier: float = 1):
        self.inner = inner
        self.max_attempts = max_attempts
        self.max_wait = max_wait
        self.multiplier = multiplier

    def post(self, url: str, data: Mapping[str, Any]) -> None:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(multiplier=self.multiplier, max=self.max_wait),
            retry=retry_if_exception_type(TransportError),
            before_sleep=lambda retry_state: logger.warning(
                "Collect request failed, retrying (attempt %s): %s",
                retry_state.attempt_number,
                retry_state.outcome.exception(),
            ),
            reraise=True,
        )
        retrying(self.inner.post, url, data)


def build_dispatcher(config: Mapping[str, Any]) -> Dispatcher:
    dispatcher = UrlFetchDispatcher(timeout=float(config.get("ANALYTICS_HTTP_TIMEOUT") or 5))
    if config.get("ANALYTICS_RETRY_ENABLED"):
        return BackoffDispatcher(
            dispatcher,
            max_attempts=int(config.get("ANALYTICS_RETRY_MAX_ATTEMPTS") or 5),
        )
    return dispatcher
