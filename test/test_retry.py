"""Tests for the retry policy."""

from unittest.mock import AsyncMock, patch

import pytest

from gcloudrpc.code import Code
from gcloudrpc.exceptions import AuthError, TransportError
from gcloudrpc.options import RetryPolicy
from gcloudrpc.retry import backoff_delays, execute_with_retry


def test_retry_policy_defaults():
    policy = RetryPolicy()
    assert policy.max_attempts == 3
    assert policy.initial_backoff_ms == 100
    assert policy.backoff_multiplier == 1.0
    assert policy.jitter == 0.0
    assert policy.retryable_codes == [Code.UNAVAILABLE]


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"jitter": 1.5}])
def test_retry_policy_validation(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_backoff_delays_fixed_by_default():
    assert list(backoff_delays(RetryPolicy())) == [0.1, 0.1]


def test_backoff_delays_exponential_and_capped():
    policy = RetryPolicy(
        max_attempts=5,
        initial_backoff_ms=100,
        max_backoff_ms=300,
        backoff_multiplier=2.0,
    )
    assert list(backoff_delays(policy)) == [0.1, 0.2, 0.3, 0.3]


def test_backoff_delays_jitter_stays_in_range():
    policy = RetryPolicy(max_attempts=50, initial_backoff_ms=100, jitter=0.5)
    for delay in backoff_delays(policy):
        assert 0.05 <= delay <= 0.15


@pytest.mark.asyncio
async def test_retry_success_after_failure():
    attempt_count = 0

    async def failing_once():
        nonlocal attempt_count
        attempt_count += 1
        if attempt_count < 2:
            raise TransportError(Code.UNAVAILABLE, "Service unavailable")
        return "success"

    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await execute_with_retry(failing_once, RetryPolicy())

    assert result == "success"
    assert attempt_count == 2
    mock_sleep.assert_awaited_once_with(0.1)


@pytest.mark.asyncio
async def test_retry_exhausted():
    attempt_count = 0

    async def always_unavailable():
        nonlocal attempt_count
        attempt_count += 1
        raise TransportError(Code.UNAVAILABLE, f"Attempt {attempt_count}")

    with (
        patch("asyncio.sleep", new_callable=AsyncMock),
        pytest.raises(TransportError) as exc_info,
    ):
        await execute_with_retry(always_unavailable, RetryPolicy())

    assert attempt_count == 3
    assert exc_info.value.http_status == 503
    assert exc_info.value.message == "Attempt 3"


@pytest.mark.asyncio
async def test_retry_non_retryable_error():
    attempt_count = 0

    async def bad_request():
        nonlocal attempt_count
        attempt_count += 1
        raise TransportError(Code.INVALID_ARGUMENT, "Bad request")

    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(TransportError) as exc_info:
            await execute_with_retry(bad_request, RetryPolicy())

    assert exc_info.value.http_status == 400
    assert attempt_count == 1
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_does_not_retry_other_errors():
    attempt_count = 0

    async def auth_failure():
        nonlocal attempt_count
        attempt_count += 1
        raise AuthError("token exchange failed")

    with pytest.raises(AuthError):
        await execute_with_retry(auth_failure, RetryPolicy())

    assert attempt_count == 1


@pytest.mark.asyncio
async def test_retry_custom_policy():
    attempt_count = 0

    async def always_unavailable():
        nonlocal attempt_count
        attempt_count += 1
        raise TransportError(Code.DEADLINE_EXCEEDED, "slow")

    policy = RetryPolicy(
        max_attempts=5,
        initial_backoff_ms=0,
        retryable_codes=[Code.UNAVAILABLE, Code.DEADLINE_EXCEEDED],
    )
    with pytest.raises(TransportError):
        await execute_with_retry(always_unavailable, policy)

    assert attempt_count == 5


@pytest.mark.asyncio
async def test_single_attempt_policy():
    attempt_count = 0

    async def always_unavailable():
        nonlocal attempt_count
        attempt_count += 1
        raise TransportError(Code.UNAVAILABLE, "down")

    with pytest.raises(TransportError):
        await execute_with_retry(always_unavailable, RetryPolicy(max_attempts=1))

    assert attempt_count == 1
