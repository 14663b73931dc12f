"""Tests for LLM retry utilities."""

import pytest

from bubble.llm.errors import MaxRetriesExceededError
from bubble.llm.retry import (
    RetryConfig,
    is_rate_limit_error,
    retry_notice,
    with_retry,
)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ApiError(Exception):
    def __init__(self, code, status: str = ""):
        super().__init__(f"{code} {status}")
        self.code = code
        self.status = status


class TestIsRateLimitError:
    def test_code_attribute(self):
        assert is_rate_limit_error(ApiError(429))

    def test_status_attribute(self):
        assert is_rate_limit_error(ApiError(None, "RESOURCE_EXHAUSTED"))

    def test_status_code_attribute(self):
        class HttpError(Exception):
            def __init__(self, status_code: int):
                super().__init__("boom")
                self.status_code = status_code

        assert is_rate_limit_error(HttpError(429))
        assert not is_rate_limit_error(HttpError(500))

    def test_message_markers(self):
        assert is_rate_limit_error(Exception("Error 429: slow down"))
        assert is_rate_limit_error(Exception("You exceeded your current quota"))
        assert is_rate_limit_error(Exception("RESOURCE_EXHAUSTED"))

    def test_other_errors(self):
        assert not is_rate_limit_error(Exception("Invalid request"))
        assert not is_rate_limit_error(ValueError("bad parameter"))
        assert not is_rate_limit_error(ApiError(400, "INVALID_ARGUMENT"))


class TestRetryConfig:
    def test_default_delays(self):
        config = RetryConfig()
        assert config.delay_ms(0) == 3000
        assert config.delay_ms(1) == 5000
        assert config.delay_ms(2) == 9000

    def test_notice_rounds_to_seconds(self):
        assert retry_notice(3000) == "(Rate limit hit. Retrying in 3s...)"
        assert retry_notice(5000) == "(Rate limit hit. Retrying in 5s...)"


class TestWithRetry:
    async def test_success_no_retry(self):
        calls = 0

        async def func():
            nonlocal calls
            calls += 1
            return "success"

        sleep = RecordingSleep()
        assert await with_retry(func, sleep=sleep) == "success"
        assert calls == 1
        assert sleep.delays == []

    async def test_backs_off_and_notifies(self):
        calls = 0

        async def func():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise Exception("429 Too Many Requests")
            return "done"

        notices: list[str] = []
        sleep = RecordingSleep()
        result = await with_retry(func, on_retry=notices.append, sleep=sleep)

        assert result == "done"
        assert calls == 3
        assert sleep.delays == [3.0, 5.0]
        assert notices == [
            "(Rate limit hit. Retrying in 3s...)",
            "(Rate limit hit. Retrying in 5s...)",
        ]

    async def test_exhaustion_raises_chained_error(self):
        calls = 0
        last = ApiError(429, "RESOURCE_EXHAUSTED")

        async def func():
            nonlocal calls
            calls += 1
            raise last

        sleep = RecordingSleep()
        with pytest.raises(MaxRetriesExceededError) as exc_info:
            await with_retry(func, RetryConfig(max_retries=2), sleep=sleep)

        assert calls == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.__cause__ is last
        assert str(exc_info.value) == "Max retries exceeded"
        assert sleep.delays == [3.0, 5.0]

    async def test_non_rate_limit_error_raised_immediately(self):
        calls = 0

        async def func():
            nonlocal calls
            calls += 1
            raise ValueError("Invalid parameter")

        sleep = RecordingSleep()
        with pytest.raises(ValueError, match="Invalid parameter"):
            await with_retry(func, sleep=sleep)

        assert calls == 1
        assert sleep.delays == []

    async def test_disabled_calls_once(self):
        calls = 0

        async def func():
            nonlocal calls
            calls += 1
            raise Exception("429")

        with pytest.raises(Exception, match="429"):
            await with_retry(func, RetryConfig(enabled=False), sleep=RecordingSleep())
        assert calls == 1

    async def test_exhaustion_logs_warning(self, caplog):
        async def func():
            raise Exception("quota exceeded")

        with caplog.at_level("WARNING", logger="bubble.llm.retry"):
            with pytest.raises(MaxRetriesExceededError):
                await with_retry(
                    func, RetryConfig(max_retries=0), sleep=RecordingSleep()
                )

        assert any(r.message == "retry_exhausted" for r in caplog.records)
