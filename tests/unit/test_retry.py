import pydantic
import pytest

from gardenbeds.shared.core.exceptions import DatabaseError, ValidationError
from gardenbeds.shared.core.retry import RETRY_EXHAUSTED_CODE, RetryPolicy, with_retry
from tests.fakes import RecordingSleep

POLICY = RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=5.0, jitter=0)


class FlakyOperation:
    """Fails with DatabaseError a fixed number of times, then succeeds."""

    def __init__(self, failures: int, error: Exception = None):
        self.failures = failures
        self.error = error or DatabaseError("connection reset", code="08006")
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


@pytest.mark.asyncio
async def test_returns_first_successful_result():
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=0)

    assert await with_retry(operation, POLICY, sleep=sleep) == "ok"
    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_retries_database_errors_with_exponential_backoff():
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=2)

    assert await with_retry(operation, POLICY, sleep=sleep) == "ok"
    assert operation.calls == 3
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_delay_is_capped_at_max_delay():
    sleep = RecordingSleep()
    policy = RetryPolicy(max_attempts=4, base_delay=2.0, max_delay=3.0, jitter=0)

    await with_retry(FlakyOperation(failures=3), policy, sleep=sleep)

    assert sleep.delays == [2.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_jitter_stays_within_bounds():
    sleep = RecordingSleep()
    policy = RetryPolicy(max_attempts=2, base_delay=1.0, max_delay=10.0, jitter=0.5)

    await with_retry(FlakyOperation(failures=1), policy, sleep=sleep)

    assert 1.0 <= sleep.delays[0] <= 1.5


@pytest.mark.asyncio
async def test_exhausted_retries_raise_retry_exhausted():
    operation = FlakyOperation(failures=10)

    with pytest.raises(DatabaseError) as exc_info:
        await with_retry(operation, POLICY, sleep=RecordingSleep(), operation_name="create pin")

    error = exc_info.value
    assert error.code == RETRY_EXHAUSTED_CODE
    assert error.details["attempts"] == 3
    assert error.details["original_code"] == "08006"
    assert "create pin failed after 3 attempts" in error.message
    assert operation.calls == 3


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    operation = FlakyOperation(failures=5, error=ValidationError("bad input"))

    with pytest.raises(ValidationError):
        await with_retry(operation, POLICY, sleep=RecordingSleep())
    assert operation.calls == 1


def test_policy_rejects_zero_attempts():
    with pytest.raises(pydantic.ValidationError):
        RetryPolicy(max_attempts=0)
