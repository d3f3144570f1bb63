# connectors/hubspot/executor.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import requests

from connectors.utils import body_excerpt, new_session, timeout_pair

from .auth import Credentials, OAuthTokenRefresher, resolve_credentials
from .config import HubSpotConfig
from .constants import (
    CONNECTOR_NAME,
    DEFAULT_TIMEOUT,
    READ_MAX_ATTEMPTS,
    WRITE_BACKOFF_MULTIPLIER,
    WRITE_BUDGET_S,
    WRITE_INITIAL_DELAY_S,
)
from .errors import AuthorizationError, ClientError, RequestFailedError, RetryableServerError
from .events import http_error, http_ok, http_retry, http_start
from .redaction import redact_text, redact_url


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    params: Tuple[Tuple[str, str], ...] = ()
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    stream: str = CONNECTOR_NAME


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attempts stop at max_attempts, or once the next delay would push the
    elapsed wall clock past budget_s, whichever comes first.

    Delay after attempt n is initial_delay_s * backoff_multiplier ** (n - 1);
    an initial delay of 0 retries immediately.
    """
    max_attempts: Optional[int] = READ_MAX_ATTEMPTS
    initial_delay_s: float = 0.0
    backoff_multiplier: float = 1.0
    budget_s: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_attempts is None and self.budget_s is None:
            raise ValueError("RetryPolicy needs max_attempts or budget_s")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def delay_after(self, attempt: int) -> float:
        if self.initial_delay_s <= 0:
            return 0.0
        return self.initial_delay_s * (self.backoff_multiplier ** max(0, attempt - 1))

    def should_retry(self, *, attempt: int, elapsed_s: float, next_delay_s: float) -> bool:
        if self.max_attempts is not None and attempt >= self.max_attempts:
            return False
        if self.budget_s is not None and elapsed_s + next_delay_s > self.budget_s:
            return False
        return True


READ_RETRY_POLICY = RetryPolicy(max_attempts=READ_MAX_ATTEMPTS)
WRITE_RETRY_POLICY = RetryPolicy(
    max_attempts=None,
    initial_delay_s=WRITE_INITIAL_DELAY_S,
    backoff_multiplier=WRITE_BACKOFF_MULTIPLIER,
    budget_s=WRITE_BUDGET_S,
)


def read_policy(config: HubSpotConfig) -> RetryPolicy:
    return RetryPolicy(max_attempts=config.read_max_attempts)


def write_policy(config: HubSpotConfig) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=None,
        initial_delay_s=WRITE_INITIAL_DELAY_S,
        backoff_multiplier=WRITE_BACKOFF_MULTIPLIER,
        budget_s=config.write_budget_seconds,
    )


class RequestExecutor:
    """
    Sends one logical request under a RetryPolicy.

    2xx returns the response. 403 raises AuthorizationError and any other 4xx
    raises ClientError, both on the first attempt. 5xx and transport failures
    are retried; running out of attempts or budget raises RequestFailedError
    chained to the last failure.

    No state is shared between execute() calls: each call opens and closes its
    own session.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        session_factory: Callable[[], requests.Session] = new_session,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self._session_factory = session_factory
        self._sleep = sleep
        self._clock = clock

    def execute(self, request: HttpRequest, policy: RetryPolicy = READ_RETRY_POLICY) -> requests.Response:
        headers, params = self.credentials.apply(dict(request.headers), list(request.params))
        log_url = redact_url(request.url)

        started = self._clock()
        attempt = 0
        with self._session_factory() as session:
            while True:
                attempt += 1
                try:
                    return self._send_once(session, request, headers, params, attempt=attempt)
                except RetryableServerError as e:
                    delay = policy.delay_after(attempt)
                    elapsed = self._clock() - started
                    if not policy.should_retry(attempt=attempt, elapsed_s=elapsed, next_delay_s=delay):
                        status_txt = e.status_code if e.status_code is not None else "n/a"
                        raise RequestFailedError(
                            f"HubSpot {request.method} {log_url} failed after {attempt} attempt(s); "
                            f"last status={status_txt}: {e}",
                            attempts=attempt,
                            last_status=e.status_code,
                        ) from e

                    http_retry(
                        stream=request.stream,
                        method=request.method,
                        url=log_url,
                        attempt=attempt,
                        sleep_s=delay,
                        status=e.status_code,
                    )
                    if delay > 0:
                        self._sleep(delay)

    def _send_once(
        self,
        session: requests.Session,
        request: HttpRequest,
        headers: Dict[str, str],
        params: List[Tuple[str, str]],
        *,
        attempt: int,
    ) -> requests.Response:
        log_url = redact_url(request.url)
        http_start(stream=request.stream, method=request.method, url=log_url, attempt=attempt)
        t0 = self._clock()

        try:
            resp = session.request(
                method=request.method,
                url=request.url,
                params=params or None,
                headers=headers,
                data=request.body.encode("utf-8") if request.body is not None else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            http_error(
                stream=request.stream,
                method=request.method,
                url=log_url,
                status=None,
                error=redact_text(repr(e), max_len=500),
                attempt=attempt,
            )
            raise RetryableServerError(f"Transport failure: {type(e).__name__}", status_code=None) from e

        elapsed_ms = int((self._clock() - t0) * 1000)
        status = resp.status_code

        if 200 <= status < 300:
            http_ok(
                stream=request.stream,
                method=request.method,
                url=log_url,
                status=status,
                elapsed_ms=elapsed_ms,
                attempt=attempt,
            )
            return resp

        excerpt = redact_text(body_excerpt(resp), max_len=500)
        http_error(
            stream=request.stream,
            method=request.method,
            url=log_url,
            status=status,
            error=f"HTTP {status}",
            attempt=attempt,
            extra={"body_excerpt": excerpt, "elapsed_ms": elapsed_ms},
        )

        if status == 403:
            raise AuthorizationError(
                f"HTTP 403 from {log_url}: endpoint not accessible with provided credentials",
                status_code=status,
                body_excerpt=excerpt,
            )
        if 400 <= status < 500:
            raise ClientError(f"HTTP {status} from {log_url}: {excerpt}", status_code=status, body_excerpt=excerpt)
        if 500 <= status < 600:
            raise RetryableServerError(f"HTTP {status} from {log_url}", status_code=status, body_excerpt=excerpt)
        raise ClientError(f"Unexpected HTTP {status} from {log_url}", status_code=status, body_excerpt=excerpt)


def executor_for(
    config: HubSpotConfig,
    *,
    refresher: Optional[OAuthTokenRefresher] = None,
    session_factory: Callable[[], requests.Session] = new_session,
) -> RequestExecutor:
    timeout = timeout_pair(config.request_timeout_s) if config.request_timeout_s else DEFAULT_TIMEOUT
    return RequestExecutor(
        resolve_credentials(config, refresher),
        session_factory=session_factory,
        timeout=timeout,
    )
