"""
Tests for the retry loop in pixelforge.core
"""
import asyncio

import pytest

from tests.helpers import FakeGenerator, moderated, success, transient
from pixelforge.core import generate_image_core, generate_with_retry
from pixelforge.errors import (
    ConfigurationError,
    ExhaustedRetries,
    PermanentUpstreamError,
    TransientUpstreamError,
)
from pixelforge.models import CreditInfo, PermanentFailure
from pixelforge.utils import backoff_delay


def run(coro):
    return asyncio.run(coro)


class TestBackoffDelay:
    def test_doubles_from_base(self):
        assert [backoff_delay(k) for k in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_scales_with_base(self):
        assert backoff_delay(2, base=0.5) == 1.0


class TestGenerateWithRetry:
    def test_first_attempt_success(self, sleep):
        generator = FakeGenerator([success()])

        result = run(generate_with_retry(generator, "a cat", sleep=sleep))

        assert generator.calls == 1
        assert sleep.delays == []
        assert result.images[0].seed == 42
        assert result.credits_used == "0.2"

    def test_two_transient_failures_then_success(self, sleep):
        generator = FakeGenerator([transient(), transient(), success()])

        result = run(generate_with_retry(generator, "a cat", max_retries=2, sleep=sleep))

        assert generator.calls == 3
        assert sleep.delays == [1.0, 2.0]
        assert result.images[0].base64 == "aW1hZ2U="

    def test_always_transient_exhausts_retries(self, sleep):
        generator = FakeGenerator(
            [transient("first"), transient("second"), transient("last one", remaining="12")]
        )

        with pytest.raises(ExhaustedRetries) as exc_info:
            run(generate_with_retry(generator, "a cat", max_retries=2, sleep=sleep))

        assert generator.calls == 3
        error = exc_info.value
        assert error.status_code == 500
        assert error.message == "last one"
        assert error.credits_used == "0"
        assert error.remaining_credits == "12"
        assert isinstance(error.__cause__, TransientUpstreamError)
        assert error.__cause__.status_code == 503

    def test_moderation_rejection_is_not_retried(self, sleep):
        generator = FakeGenerator([moderated(), success()])

        with pytest.raises(PermanentUpstreamError) as exc_info:
            run(generate_with_retry(generator, "something rude", sleep=sleep))

        assert generator.calls == 1
        assert sleep.delays == []
        assert exc_info.value.status_code == 400
        assert exc_info.value.credits_used == "0"

    def test_bad_request_keeps_reported_credits(self, sleep):
        bad_request = PermanentFailure(
            message="invalid prompt",
            status_code=400,
            credits=CreditInfo(credits_used="0.1"),
        )
        generator = FakeGenerator([transient(), bad_request])

        with pytest.raises(PermanentUpstreamError) as exc_info:
            run(generate_with_retry(generator, "a cat", sleep=sleep))

        assert generator.calls == 2
        assert sleep.delays == [1.0]
        assert exc_info.value.message == "invalid prompt"
        assert exc_info.value.credits_used == "0.1"

    def test_zero_retries_makes_single_attempt(self, sleep):
        generator = FakeGenerator([transient("boom")])

        with pytest.raises(ExhaustedRetries, match="boom"):
            run(generate_with_retry(generator, "a cat", max_retries=0, sleep=sleep))

        assert generator.calls == 1

    def test_programming_errors_propagate(self, sleep):
        class BrokenGenerator(FakeGenerator):
            async def generate_once(self, prompt):
                raise KeyError("artifacts")

        with pytest.raises(KeyError):
            run(generate_with_retry(BrokenGenerator([]), "a cat", sleep=sleep))


class TestGenerateImageCore:
    def test_missing_key_fails_before_generator_is_built(self, settings_without_key, sleep):
        built = []

        with pytest.raises(ConfigurationError):
            run(generate_image_core("a cat", settings_without_key, built.append, sleep=sleep))

        assert built == []

    def test_generator_is_closed_after_failure(self, settings, sleep):
        generator = FakeGenerator([transient(), transient(), transient()])

        with pytest.raises(ExhaustedRetries):
            run(generate_image_core("a cat", settings, lambda s: generator, sleep=sleep))

        assert generator.closed

    def test_uses_configured_retry_policy(self, settings, sleep):
        settings = settings.model_copy(update={"max_retries": 3, "backoff_base_seconds": 0.5})
        generator = FakeGenerator([transient()] * 3 + [success()])

        run(generate_image_core("a cat", settings, lambda s: generator, sleep=sleep))

        assert generator.calls == 4
        assert sleep.delays == [0.5, 1.0, 2.0]
        assert generator.closed
