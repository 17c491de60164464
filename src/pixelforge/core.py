from pixelforge.config import Settings
from pixelforge.errors import (
    UNKNOWN_CREDITS,
    ConfigurationError,
    ExhaustedRetries,
    PermanentUpstreamError,
    TransientUpstreamError,
)
from pixelforge.models import GenerationResult, TransientFailure
from pixelforge.providers.base_provider import BaseImageGenerator
from pixelforge.providers.stability_provider import StabilityProvider
from pixelforge.utils import backoff_delay
from typing import Awaitable, Callable, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
EXHAUSTED_MESSAGE = "Failed to generate image after multiple attempts"

GeneratorFactory = Callable[[Settings], BaseImageGenerator]
Sleep = Callable[[float], Awaitable[None]]


async def generate_with_retry(
    generator: BaseImageGenerator,
    prompt: str,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> GenerationResult:
    """
    Runs up to ``max_retries + 1`` sequential attempts.

    Successes are returned as soon as they arrive and permanent failures are
    raised without consuming a retry. When every attempt fails transiently
    the last failure is raised as ExhaustedRetries.
    """
    last_failure: Optional[TransientFailure] = None
    remaining_credits: Optional[str] = None

    for attempt in range(max_retries + 1):
        if attempt > 0:
            delay = backoff_delay(attempt, backoff_base)
            logger.info(
                f"Retry attempt {attempt} of {max_retries} after {delay:.1f}s"
            )
            await sleep(delay)

        outcome = await generator.generate_once(prompt)

        if outcome.kind == "success":
            return outcome.result

        if outcome.credits.remaining_credits not in (None, UNKNOWN_CREDITS):
            remaining_credits = outcome.credits.remaining_credits

        if outcome.kind == "permanent":
            logger.warning(
                f"Attempt {attempt} rejected permanently ({outcome.status_code}): {outcome.message}"
            )
            raise PermanentUpstreamError(
                outcome.message,
                credits_used="0" if outcome.moderated else outcome.credits.credits_used,
                remaining_credits=outcome.credits.remaining_credits,
            )

        logger.error(f"Attempt {attempt} failed: {outcome.message}")
        last_failure = outcome

    logger.error("All retry attempts failed")
    cause = None
    if last_failure is not None:
        cause = TransientUpstreamError(
            last_failure.message, status_code=last_failure.status_code
        )
    raise ExhaustedRetries(
        last_failure.message if last_failure else EXHAUSTED_MESSAGE,
        credits_used="0",
        remaining_credits=remaining_credits or UNKNOWN_CREDITS,
    ) from cause


async def generate_image_core(
    prompt: str,
    settings: Settings,
    generator_factory: GeneratorFactory = StabilityProvider,
    sleep: Sleep = asyncio.sleep,
) -> GenerationResult:
    if not settings.has_api_key:
        logger.error("Stability API key is not configured")
        raise ConfigurationError("API key not configured")

    generator = generator_factory(settings)
    try:
        return await generate_with_retry(
            generator,
            prompt,
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base_seconds,
            sleep=sleep,
        )
    finally:
        await generator.close()
