# 📄 File: gardenbeds/shared/infrastructure/external_apis/api_client.py

# 🧭 Purpose (Layman Explanation):
# A careful messenger for talking to outside services such as the plant lookup API. It waits
# its turn, gives up after a while if there is no answer, tries again when something goes wrong,
# and remembers recent answers so we don't ask twice.

# 🧪 Purpose (Technical Summary):
# Async HTTP request executor built on aiohttp. Pipeline: request interceptors, per-host
# sliding window rate limiting, timeout-bounded call, exponential backoff retries (tenacity),
# response interceptors, optional read-through caching of JSON bodies, error interceptors.

# 🔗 Dependencies:
# - aiohttp: Async HTTP client
# - tenacity: Retry logic and backoff strategies
# - pydantic: RequestConfig validation
# - gardenbeds.shared.core.cache / rate_limiter: Response cache and per-host limiters

# 🔄 Connected Modules / Calls From:
# Used by: TreflePlantClient, BackendService (rate limit status, statistics)

import asyncio
import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Union
from urllib.parse import urlencode, urlparse

import aiohttp
from aiohttp import ClientSession, ClientTimeout
from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gardenbeds.shared.core.cache import CacheRegistry, cached_call
from gardenbeds.shared.core.exceptions import (
    APIAuthenticationError,
    APIQuotaExceededError,
    APITimeoutError,
    ExternalAPIError,
)
from gardenbeds.shared.core.rate_limiter import RateLimiterRegistry
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

MAX_BACKOFF_SECONDS = 10


class RequestConfig(BaseModel):
    """
    A single outbound request.

    ``timeout`` and ``retries`` fall back to the client defaults when unset.
    ``retries`` is the total number of attempts.
    """

    model_config = ConfigDict(extra="forbid")

    url: str
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)
    body: Optional[Any] = None
    timeout: Optional[float] = Field(default=None, gt=0)
    retries: Optional[int] = Field(default=None, ge=1)
    cache: bool = False
    cache_ttl: Optional[float] = Field(default=None, gt=0)


@dataclass
class APIResponse:
    """Response passed through response interceptors."""
    status: int
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


RequestInterceptor = Callable[[RequestConfig], Union[RequestConfig, Awaitable[RequestConfig]]]
ResponseInterceptor = Callable[[APIResponse], Union[APIResponse, Awaitable[APIResponse]]]
ErrorInterceptor = Callable[[Exception], Union[Exception, Awaitable[Exception]]]


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


class APIClient:
    """
    Resilient async HTTP client for external APIs.

    Features:
    - Request, response and error interceptor chains (registration order)
    - Per-host sliding window rate limiting before every attempt
    - Timeout per request; timeouts are terminal and never retried
    - Exponential backoff retries: 1s, 2s, 4s ... capped at 10s
    - Optional caching of JSON bodies in the ``api`` cache
    - Request statistics and recent error history
    """

    def __init__(
        self,
        cache_registry: CacheRegistry,
        rate_limiters: RateLimiterRegistry,
        base_url: str = "",
        timeout: float = 30.0,
        retries: int = 3,
        session: Optional[ClientSession] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        user_agent: str = "GardenBeds/1.0",
        slow_response_threshold_ms: int = 5000,
        default_interceptors: bool = True
    ):
        """Initialize API client with configuration."""
        self.cache_registry = cache_registry
        self.rate_limiters = rate_limiters
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retries = retries
        self.user_agent = user_agent
        self.slow_response_threshold_ms = slow_response_threshold_ms

        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

        self._request_interceptors: List[RequestInterceptor] = []
        self._response_interceptors: List[ResponseInterceptor] = []
        self._error_interceptors: List[ErrorInterceptor] = []

        self.stats = {
            'total_requests': 0,
            'total_attempts': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'timeouts': 0,
            'average_response_time_ms': 0.0,
            'last_request_time': None,
        }

        self.error_history: List[Dict[str, Any]] = []
        self.max_error_history = 100

        if default_interceptors:
            self._install_default_interceptors()

    # =========================================================================
    # INTERCEPTORS
    # =========================================================================

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> None:
        self._request_interceptors.append(interceptor)

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> None:
        self._response_interceptors.append(interceptor)

    def add_error_interceptor(self, interceptor: ErrorInterceptor) -> None:
        self._error_interceptors.append(interceptor)

    def _install_default_interceptors(self) -> None:
        user_agent = self.user_agent
        threshold = self.slow_response_threshold_ms

        def add_user_agent(config: RequestConfig) -> RequestConfig:
            if 'User-Agent' in config.headers:
                return config
            return config.model_copy(update={'headers': {**config.headers, 'User-Agent': user_agent}})

        def warn_slow_response(response: APIResponse) -> APIResponse:
            reported = response.headers.get('x-response-time') or response.headers.get('X-Response-Time')
            try:
                reported_ms = float(str(reported).rstrip('ms')) if reported else None
            except ValueError:
                reported_ms = None
            if reported_ms is not None and reported_ms > threshold:
                logger.warning(
                    f"Slow API response: {response.url} took {reported_ms:.0f}ms",
                    extra={'url': response.url, 'response_time_ms': reported_ms}
                )
            return response

        def log_error(error: Exception) -> Exception:
            logger.error(
                f"API request failed: {error}",
                extra={'error_type': type(error).__name__}
            )
            return error

        self.add_request_interceptor(add_user_agent)
        self.add_response_interceptor(warn_slow_response)
        self.add_error_interceptor(log_error)

    # =========================================================================
    # SESSION
    # =========================================================================

    async def _get_session(self) -> ClientSession:
        if self._session is None:
            self._session = ClientSession(headers={'Accept': 'application/json'})
            self._owns_session = True
            logger.info("HTTP client session created")
        return self._session

    async def close(self) -> None:
        """Close the client session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
            logger.info("API client session closed")

    # =========================================================================
    # REQUEST PIPELINE
    # =========================================================================

    def _build_url(self, url: str) -> str:
        if url.startswith(('http://', 'https://')) or not self.base_url:
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    @staticmethod
    def _get_cache_key(config: RequestConfig) -> str:
        """Deterministic key: METHOD:url:params:body."""
        key_parts = [config.method, config.url]
        key_parts.append(urlencode(sorted(config.params.items())) if config.params else "")
        key_parts.append(
            json.dumps(config.body, sort_keys=True, default=str) if config.body is not None else ""
        )
        return ':'.join(key_parts)

    async def request(self, config: RequestConfig) -> Any:
        """
        Execute a request through the full pipeline and return its JSON body.

        Raises:
            APITimeoutError: The call did not complete within its timeout
            ExternalAPIError: Non-2xx status or transport failure after all attempts
        """
        config = config.model_copy(update={'url': self._build_url(config.url)})

        if not config.cache:
            return await self._execute(config)

        return await cached_call(
            self.cache_registry.api,
            self._get_cache_key(config),
            lambda: self._execute(config),
            ttl=config.cache_ttl,
            tags=(f"host:{urlparse(config.url).hostname}",),
        )

    async def _execute(self, config: RequestConfig) -> Any:
        self.stats['total_requests'] += 1
        self.stats['last_request_time'] = datetime.now(timezone.utc).isoformat()

        try:
            for interceptor in self._request_interceptors:
                config = await _resolve(interceptor(config))

            response = await self._execute_with_retry(config)

            for interceptor in self._response_interceptors:
                response = await _resolve(interceptor(response))

        except Exception as e:
            self.stats['failed_requests'] += 1
            self._record_error(e, config.method, config.url)
            transformed = await self._apply_error_interceptors(e)
            if transformed is e:
                raise
            raise transformed from e

        self.stats['successful_requests'] += 1
        return response.data

    async def _apply_error_interceptors(self, error: Exception) -> Exception:
        for interceptor in self._error_interceptors:
            transformed = await _resolve(interceptor(error))
            if isinstance(transformed, BaseException):
                error = transformed
            else:
                logger.warning(
                    "Error interceptor returned a non-exception; keeping original error",
                    extra={'interceptor': getattr(interceptor, '__name__', repr(interceptor))}
                )
        return error

    async def _execute_with_retry(self, config: RequestConfig) -> APIResponse:
        attempts = config.retries or self.retries

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, max=MAX_BACKOFF_SECONDS),
            retry=retry_if_not_exception_type(APITimeoutError),
            before_sleep=before_sleep_log(logger.logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                return await self._attempt(config, attempt.retry_state.attempt_number)

    async def _attempt(self, config: RequestConfig, attempt_number: int) -> APIResponse:
        host = urlparse(config.url).hostname or ""
        await self.rate_limiters.get(host).wait_for_slot()

        session = await self._get_session()
        timeout = config.timeout or self.timeout

        request_kwargs: Dict[str, Any] = {
            'headers': config.headers,
            'timeout': ClientTimeout(total=timeout),
        }
        if config.params:
            request_kwargs['params'] = config.params
        if config.body is not None:
            if isinstance(config.body, (dict, list)):
                request_kwargs['json'] = config.body
            else:
                request_kwargs['data'] = config.body

        self.stats['total_attempts'] += 1
        start_time = time.perf_counter()

        try:
            async with session.request(config.method, config.url, **request_kwargs) as response:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                self._update_response_time(elapsed_ms)

                await self._handle_response_status(response, config.url)
                data = await self._read_body(response)

                logger.performance.log_external_api_call(
                    config.method, config.url, response.status, elapsed_ms, True, attempt_number
                )
                return APIResponse(
                    status=response.status,
                    url=config.url,
                    headers=dict(response.headers),
                    data=data,
                    elapsed_ms=elapsed_ms,
                )

        except asyncio.TimeoutError as e:
            self.stats['timeouts'] += 1
            raise APITimeoutError(config.url, timeout) from e

        except aiohttp.ClientError as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.performance.log_external_api_call(
                config.method, config.url, None, elapsed_ms, False, attempt_number
            )
            raise ExternalAPIError(f"Request failed: {e}", url=config.url) from e

    @staticmethod
    async def _read_body(response) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return {'raw_response': await response.text()}

    async def _handle_response_status(self, response, url: str) -> None:
        """Raise a typed error for any non-2xx status."""
        status = response.status
        if 200 <= status < 300:
            return

        if status in (401, 403):
            raise APIAuthenticationError(url, status)
        if status in (402, 429, 509):
            raise APIQuotaExceededError(url, status, retry_after=response.headers.get('Retry-After'))

        response_text = await response.text()
        raise ExternalAPIError(
            f"HTTP {status}: {response_text[:200]}",
            upstream_status=status,
            url=url
        )

    def _update_response_time(self, elapsed_ms: float) -> None:
        if self.stats['average_response_time_ms'] == 0:
            self.stats['average_response_time_ms'] = elapsed_ms
        else:
            self.stats['average_response_time_ms'] = (
                self.stats['average_response_time_ms'] * 0.7 + elapsed_ms * 0.3
            )

    def _record_error(self, error: Exception, method: str, url: str) -> None:
        """Record error for analysis and monitoring."""
        self.error_history.append({
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'error_type': type(error).__name__,
            'error_message': str(error),
            'method': method,
            'url': url,
        })

        if len(self.error_history) > self.max_error_history:
            self.error_history = self.error_history[-self.max_error_history:]

    # =========================================================================
    # CONVENIENCE METHODS
    # =========================================================================

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **options
    ) -> Any:
        """Make GET request. Extra options are RequestConfig fields."""
        return await self.request(RequestConfig(
            url=url, method="GET", params=params or {}, headers=headers or {}, **options
        ))

    async def post(
        self,
        url: str,
        body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        **options
    ) -> Any:
        """Make POST request."""
        return await self.request(RequestConfig(
            url=url, method="POST", body=body, headers=headers or {}, **options
        ))

    async def put(
        self,
        url: str,
        body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        **options
    ) -> Any:
        """Make PUT request."""
        return await self.request(RequestConfig(
            url=url, method="PUT", body=body, headers=headers or {}, **options
        ))

    async def delete(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        **options
    ) -> Any:
        """Make DELETE request."""
        return await self.request(RequestConfig(
            url=url, method="DELETE", headers=headers or {}, **options
        ))

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def get_rate_limit_status(self, host: str) -> Dict[str, Any]:
        return self.rate_limiters.status(host)

    def clear_rate_limiters(self) -> None:
        self.rate_limiters.clear()

    def get_recent_errors(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self.error_history[-limit:]

    def get_stats(self) -> Dict[str, Any]:
        """Get client performance statistics."""
        return {
            **self.stats,
            'error_rate': (
                self.stats['failed_requests'] / max(self.stats['total_requests'], 1)
            ) * 100,
            'rate_limited_hosts': self.rate_limiters.hosts(),
        }
