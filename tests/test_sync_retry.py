"""
Tests for bounded retry with exponential backoff.

Tests cover:
- RetryConfig validation and delay calculation
- Error classification for retry decisions
- RetryExecutor attempt counts, delays and exhaustion
- with_retry decorator
"""

from unittest.mock import Mock, call

import httpx
import pytest

from grocersync.core.sync.exceptions import (
    LocalStoreError,
    NetworkUnavailableError,
    RetriesExhaustedError,
    ServerRejectedError,
    TransportError,
)
from grocersync.core.sync.retry import (
    RetryConfig,
    RetryExecutor,
    is_retryable_error,
    with_retry,
)


class TestRetryConfig:
    """Test RetryConfig class."""

    def test_default_config(self) -> None:
        """Test default retry configuration values."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 1.0
        assert config.multiplier == 2.0

    def test_invalid_max_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts must be at least 1"):
            RetryConfig(max_attempts=0)

    def test_invalid_base_delay(self) -> None:
        with pytest.raises(ValueError, match="base_delay must be non-negative"):
            RetryConfig(base_delay=-1.0)

    def test_invalid_multiplier(self) -> None:
        with pytest.raises(ValueError, match="multiplier must be >= 1.0"):
            RetryConfig(multiplier=0.5)

    def test_calculate_delay_exponential(self) -> None:
        """Delays double from the base delay."""
        config = RetryConfig(base_delay=1.0, multiplier=2.0)
        assert config.calculate_delay(0) == 0.0
        assert config.calculate_delay(1) == 1.0
        assert config.calculate_delay(2) == 2.0
        assert config.calculate_delay(3) == 4.0

    def test_total_budget(self) -> None:
        """Three attempts sleep twice: 1s then 2s."""
        assert RetryConfig(max_attempts=3).total_budget == 3.0
        assert RetryConfig(max_attempts=1).total_budget == 0.0


class TestIsRetryableError:
    """Test is_retryable_error function."""

    def test_transport_error_is_retryable(self) -> None:
        assert is_retryable_error(TransportError("reset"))

    def test_exhausted_error_is_transport_error(self) -> None:
        assert is_retryable_error(RetriesExhaustedError(3, TransportError("reset")))

    def test_httpx_timeout_is_retryable(self) -> None:
        assert is_retryable_error(httpx.ReadTimeout("slow"))

    def test_httpx_connect_error_is_retryable(self) -> None:
        assert is_retryable_error(httpx.ConnectError("refused"))

    def test_5xx_status_is_retryable(self) -> None:
        request = httpx.Request("GET", "https://api.example.com")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("unavailable", request=request, response=response)
        assert is_retryable_error(error)

    def test_4xx_status_is_not_retryable(self) -> None:
        request = httpx.Request("GET", "https://api.example.com")
        response = httpx.Response(404, request=request)
        error = httpx.HTTPStatusError("missing", request=request, response=response)
        assert not is_retryable_error(error)

    @pytest.mark.parametrize(
        "error",
        [
            ServerRejectedError("HTTP 400: Bad Request", status_code=400),
            NetworkUnavailableError(),
            LocalStoreError("disk full"),
            ValueError("bug"),
        ],
    )
    def test_other_errors_are_not_retryable(self, error: Exception) -> None:
        assert not is_retryable_error(error)


class TestRetryExecutor:
    """Test RetryExecutor.run()."""

    def test_success_first_attempt(self) -> None:
        sleep = Mock()
        operation = Mock(return_value="ok")

        result = RetryExecutor(sleep=sleep).run(operation)

        assert result == "ok"
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_success_after_one_failure(self) -> None:
        """Fails once, then succeeds: two calls and one 1s wait."""
        sleep = Mock()
        operation = Mock(side_effect=[TransportError("reset"), "ok"])

        result = RetryExecutor(RetryConfig(max_attempts=3), sleep=sleep).run(operation)

        assert result == "ok"
        assert operation.call_count == 2
        sleep.assert_called_once_with(1.0)

    def test_always_failing_makes_exactly_max_attempts_calls(self) -> None:
        sleep = Mock()
        last = TransportError("still down")
        operation = Mock(side_effect=[TransportError("down"), TransportError("down"), last])

        with pytest.raises(RetriesExhaustedError) as exc_info:
            RetryExecutor(RetryConfig(max_attempts=3), sleep=sleep).run(operation)

        assert operation.call_count == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert exc_info.value.__cause__ is last
        assert sleep.call_args_list == [call(1.0), call(2.0)]

    def test_single_attempt_never_sleeps(self) -> None:
        sleep = Mock()
        operation = Mock(side_effect=TransportError("down"))

        with pytest.raises(RetriesExhaustedError):
            RetryExecutor(RetryConfig(max_attempts=1), sleep=sleep).run(operation)

        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_non_retryable_error_propagates_immediately(self) -> None:
        sleep = Mock()
        error = ServerRejectedError("HTTP 401: Unauthorized", status_code=401)
        operation = Mock(side_effect=error)

        with pytest.raises(ServerRejectedError) as exc_info:
            RetryExecutor(sleep=sleep).run(operation)

        assert exc_info.value is error
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_httpx_errors_are_retried(self) -> None:
        sleep = Mock()
        operation = Mock(side_effect=[httpx.ConnectError("refused"), {"ok": True}])

        assert RetryExecutor(sleep=sleep).run(operation, name="fetch") == {"ok": True}
        assert operation.call_count == 2

    def test_custom_multiplier(self) -> None:
        sleep = Mock()
        operation = Mock(side_effect=TransportError("down"))
        config = RetryConfig(max_attempts=4, base_delay=0.5, multiplier=3.0)

        with pytest.raises(RetriesExhaustedError):
            RetryExecutor(config, sleep=sleep).run(operation)

        assert sleep.call_args_list == [call(0.5), call(1.5), call(4.5)]


class TestWithRetryDecorator:
    """Test with_retry decorator."""

    def test_retries_decorated_function(self) -> None:
        mock_func = Mock(side_effect=[TransportError("reset"), "success"])
        decorated = with_retry(max_attempts=3, base_delay=0.0)(mock_func)

        result = decorated()

        assert result == "success"
        assert mock_func.call_count == 2

    def test_passes_arguments(self) -> None:
        @with_retry(max_attempts=2, base_delay=0.0)
        def add(a: int, b: int = 0) -> int:
            return a + b

        assert add(2, b=3) == 5
        assert add.__name__ == "add"

    def test_exhaustion(self) -> None:
        mock_func = Mock(side_effect=TransportError("down"))
        decorated = with_retry(max_attempts=2, base_delay=0.0)(mock_func)

        with pytest.raises(RetriesExhaustedError):
            decorated()

        assert mock_func.call_count == 2
