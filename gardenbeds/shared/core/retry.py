# 📄 File: gardenbeds/shared/core/retry.py

# 🧭 Purpose (Layman Explanation):
# If the database hiccups, try the same operation again a couple of times, waiting a little
# longer each time, before giving up.

# 🧪 Purpose (Technical Summary):
# Store retry policy (attempts, exponential base delay with random jitter, delay cap) run
# through tenacity's AsyncRetrying. Exhausted retries surface as DatabaseError with code
# RETRY_EXHAUSTED wrapping the last failure.

# 🔗 Dependencies:
# - tenacity: Retry loop and wait strategies
# - pydantic: RetryPolicy validation

# 🔄 Connected Modules / Calls From:
# Used by: garden repositories (batch member writes)

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from gardenbeds.shared.core.exceptions import DatabaseError
from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRY_EXHAUSTED_CODE = "RETRY_EXHAUSTED"


class RetryPolicy(BaseModel):
    """Exponential backoff with jitter: min(base * 2**(n-1) + rand(0, jitter), max_delay)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=5.0, ge=0)
    jitter: float = Field(default=1.0, ge=0)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    retry_on: Tuple[Type[BaseException], ...] = (DatabaseError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    operation_name: str = "operation"
) -> T:
    """
    Run ``operation`` under ``policy``.

    Raises:
        DatabaseError: code RETRY_EXHAUSTED once every attempt has failed
    """
    policy = policy or RetryPolicy()
    backoff = wait_exponential(multiplier=policy.base_delay, max=policy.max_delay)
    if policy.jitter:
        backoff = backoff + wait_random(0, policy.jitter)

    def capped_wait(retry_state) -> float:
        return min(backoff(retry_state), policy.max_delay)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=capped_wait,
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger.logger, logging.WARNING),
        sleep=sleep,
    )

    try:
        async for attempt in retrying:
            with attempt:
                return await operation()
    except RetryError as e:
        last_error = e.last_attempt.exception()
        message = getattr(last_error, "message", None) or str(last_error)
        raise DatabaseError(
            f"{operation_name} failed after {policy.max_attempts} attempts: {message}",
            code=RETRY_EXHAUSTED_CODE,
            details={
                "attempts": policy.max_attempts,
                "original_code": getattr(last_error, "code", None),
            }
        ) from last_error
