"""
Retry policy tests
"""

import asyncio

import pytest

from contract_analyser.shared.core.errors import AnalysisError
from contract_analyser.shared.core.retry import retry_async


class FlakyOperation:
    """Fails ``failures`` times with ``error`` before returning ``value``"""

    def __init__(self, failures, error, value="ok"):
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


class TestRetryAsync:

    @pytest.fixture(autouse=True)
    def setup(self, sleep_recorder):
        self.sleep = sleep_recorder
        self.transient = AnalysisError("rate limited", kind=AnalysisError.TRANSIENT_PROVIDER)

    def _run(self, operation, **kwargs):
        return asyncio.run(retry_async(operation, sleep=self.sleep, **kwargs))

    def test_delays_double_from_initial_delay(self):
        operation = FlakyOperation(3, self.transient)
        assert self._run(operation, max_attempts=4, initial_delay=0.5) == "ok"
        assert self.sleep.delays == [0.5, 1.0, 2.0]

    def test_first_attempt_succeeds(self):
        operation = FlakyOperation(0, self.transient)
        assert self._run(operation) == "ok"
        assert operation.calls == 1
        assert self.sleep.delays == []

    def test_succeeds_on_third_attempt(self):
        operation = FlakyOperation(2, self.transient)
        assert self._run(operation, max_attempts=3, initial_delay=1.0) == "ok"
        assert operation.calls == 3
        assert self.sleep.delays == [1.0, 2.0]

    def test_exhausted_attempts_reraise_last_error(self):
        operation = FlakyOperation(5, self.transient)
        with pytest.raises(AnalysisError) as exc_info:
            self._run(operation, max_attempts=3, initial_delay=1.0)
        assert exc_info.value is self.transient
        assert operation.calls == 3
        assert self.sleep.delays == [1.0, 2.0]

    def test_predicate_stops_terminal_errors(self):
        terminal = AnalysisError("bad json", kind=AnalysisError.INVALID_MODEL_OUTPUT)
        operation = FlakyOperation(5, terminal)
        with pytest.raises(AnalysisError):
            self._run(
                operation,
                retry_on=(AnalysisError,),
                should_retry=lambda e: isinstance(e, AnalysisError) and e.is_transient,
            )
        assert operation.calls == 1
        assert self.sleep.delays == []

    def test_unlisted_exception_types_are_not_retried(self):
        operation = FlakyOperation(5, KeyError("missing"))
        with pytest.raises(KeyError):
            self._run(operation, retry_on=(AnalysisError,))
        assert operation.calls == 1

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            self._run(FlakyOperation(0, self.transient), max_attempts=0)
