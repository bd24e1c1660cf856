"""Tests for the transient error retry policy."""

from unittest.mock import MagicMock

import pytest

from object_editor.storage.exceptions import StorageError, StorageTransientError
from object_editor.storage.retry import RetryPolicy


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def policy(sleeps) -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_delay=0.5, max_delay=0.8, sleep=sleeps.append)


class TestRetryPolicy:
    def test_returns_first_success(self, policy, sleeps):
        operation = MagicMock(return_value="ok")

        assert policy.call(operation, 1, flag=True) == "ok"
        operation.assert_called_once_with(1, flag=True)
        assert sleeps == []

    def test_retries_transient_errors_with_backoff(self, policy, sleeps):
        operation = MagicMock(side_effect=[StorageTransientError("a"), StorageTransientError("b"), "ok"])

        assert policy.call(operation) == "ok"
        assert operation.call_count == 3
        assert sleeps == [0.5, 0.8]

    def test_reraises_last_error_when_exhausted(self, policy):
        last = StorageTransientError("last")
        operation = MagicMock(side_effect=[StorageTransientError("first"), StorageTransientError("second"), last])

        with pytest.raises(StorageTransientError) as exc_info:
            policy.call(operation)

        assert exc_info.value is last
        assert operation.call_count == 3

    def test_other_errors_are_not_retried(self, policy):
        operation = MagicMock(side_effect=StorageError("fatal"))

        with pytest.raises(StorageError):
            policy.call(operation)

        operation.assert_called_once()

    def test_single_attempt_never_sleeps(self, sleeps):
        policy = RetryPolicy(max_attempts=1, sleep=sleeps.append)
        operation = MagicMock(side_effect=StorageTransientError("x"))

        with pytest.raises(StorageTransientError):
            policy.call(operation)

        assert sleeps == []

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
