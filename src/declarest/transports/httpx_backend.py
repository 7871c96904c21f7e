import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from declarest.core.descriptors import MethodVerb
from declarest.core.errors import TransportError
from declarest.core.messages import Request, Response
from declarest.core.observability import elapsed_ms, log_event

IDEMPOTENT_VERBS = frozenset(
    {
        MethodVerb.GET,
        MethodVerb.HEAD,
        MethodVerb.OPTIONS,
        MethodVerb.PUT,
        MethodVerb.DELETE,
    }
)


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2  # total extra attempts
    backoff_base_seconds: float = 0.3  # 0.3, 0.6, 1.2...
    retry_statuses: frozenset[int] = frozenset({502, 503, 504})
    retry_on_429: bool = False
    retry_verbs: frozenset[MethodVerb] = IDEMPOTENT_VERBS


class HttpxTransport:
    """
    Transport over httpx.AsyncClient.
    - Owns timeouts and retries (network/timeouts + retry_statuses; optionally 429)
    - Retries only verbs listed in RetryConfig.retry_verbs
    - Raises TransportError on network/timeout/protocol errors after retries
    - Hands every completed response back as-is; status policy is the caller's
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.retry = retry if retry is not None else RetryConfig()
        self.log = logger or logging.getLogger("declarest.transports.httpx")

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _may_retry(self, request: Request, attempt: int) -> bool:
        return (
            request.method in self.retry.retry_verbs
            and attempt < self.retry.max_retries
        )

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(self.retry.backoff_base_seconds * (2**attempt))

    async def execute(self, request: Request) -> Response:
        method = request.method.value
        start = time.perf_counter()
        attempt = 0

        while True:
            try:
                resp = await self.http.request(
                    method,
                    request.url,
                    headers=list(request.headers),
                    content=request.body,
                )
                log_event(
                    "http.request",
                    self.log,
                    level=logging.DEBUG,
                    verb=method,
                    url=request.url,
                    status=resp.status_code,
                    duration_ms=elapsed_ms(start),
                    attempt=attempt,
                )

                if resp.status_code in self.retry.retry_statuses or (
                    self.retry.retry_on_429 and resp.status_code == 429
                ):
                    if self._may_retry(request, attempt):
                        await self._backoff(attempt)
                        attempt += 1
                        continue

                return Response(
                    status=resp.status_code,
                    headers=dict(resp.headers),
                    body=resp.content,
                )

            except (httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout) as exc:
                if self._may_retry(request, attempt):
                    await self._backoff(attempt)
                    attempt += 1
                    continue
                raise TransportError(
                    f"Network/timeout error calling {method} {request.url}: {exc}"
                ) from exc

            except httpx.HTTPError as exc:
                # Other httpx exceptions (rare) - do not blindly retry
                raise TransportError(
                    f"HTTPX error calling {method} {request.url}: {exc}"
                ) from exc


__all__ = ["HttpxTransport", "RetryConfig", "IDEMPOTENT_VERBS"]
