"""
Tests for deployment validation.
"""

from unittest.mock import MagicMock

import pytest

from shared.deployment import (
    ValidationStep,
    run_step,
    validate_deployment,
    validation_retry_config,
)


def flaky(results):
    """Check returning each of results in turn."""
    outcomes = iter(results)
    return MagicMock(side_effect=lambda: next(outcomes))


class TestValidationRetryConfig:
    def test_attempts_and_delay(self):
        config = validation_retry_config(3, 10)

        assert config.max_attempts == 3
        assert config.base_delay == 10
        assert config.max_delay == 10
        assert config.jitter_factor == 0.0

    def test_single_attempt(self):
        assert validation_retry_config(1, 5).max_retries == 0

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            validation_retry_config(0, 10)


class TestRunStep:
    def test_passes_first_time(self):
        sleep = MagicMock()
        result = run_step(ValidationStep("Infra", lambda: True), validation_retry_config(3, 10), sleep)

        assert result.passed is True
        assert result.attempts == 1
        sleep.assert_not_called()

    def test_retries_until_pass(self):
        """A step that fails twice then passes is approved on attempt three."""
        sleep = MagicMock()
        check = flaky([False, False, True])

        result = run_step(ValidationStep("Tenants", check), validation_retry_config(3, 10), sleep)

        assert result.passed is True
        assert result.attempts == 3
        assert [c.args[0] for c in sleep.call_args_list] == [10, 10]

    def test_fails_after_all_attempts(self):
        sleep = MagicMock()
        check = MagicMock(return_value=False)

        result = run_step(ValidationStep("Tenants", check), validation_retry_config(3, 1), sleep)

        assert result.passed is False
        assert result.attempts == 3
        assert check.call_count == 3
        assert result.error == "Tenants: check did not pass"

    def test_unexpected_exception_propagates(self):
        def broken():
            raise RuntimeError("bug in check")

        with pytest.raises(RuntimeError):
            run_step(ValidationStep("Broken", broken), validation_retry_config(3, 1), MagicMock())


class TestValidateDeployment:
    def test_all_pass_is_approved(self):
        steps = [ValidationStep("Infra", lambda: True), ValidationStep("Tenants", lambda: True)]

        verdict = validate_deployment("staging", steps, validation_retry_config(1, 0), MagicMock())

        assert verdict.approved is True
        assert verdict.to_dict()["steps"][0] == {"name": "Infra", "passed": True, "attempts": 1, "error": None}

    def test_any_failure_blocks(self):
        steps = [ValidationStep("Infra", lambda: True), ValidationStep("Tenants", lambda: False)]

        verdict = validate_deployment("production", steps, validation_retry_config(2, 0), MagicMock())

        assert verdict.approved is False
        assert [s.passed for s in verdict.steps] == [True, False]

    def test_no_steps_is_approved(self):
        assert validate_deployment("dev", [], sleep=MagicMock()).approved is True
