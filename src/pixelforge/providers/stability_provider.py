import httpx
from pixelforge.config import Settings
from pixelforge.errors import UNKNOWN_CREDITS
from pixelforge.models import (
    AttemptOutcome,
    AttemptSuccess,
    CreditInfo,
    GeneratedImage,
    GenerationResult,
    PermanentFailure,
    TransientFailure,
)
from pixelforge.providers.base_provider import BaseImageGenerator
from typing import Optional
import logging

logger = logging.getLogger(__name__)

CFG_SCALE = 7
IMAGE_WIDTH = 1024
IMAGE_HEIGHT = 1024
SAMPLES = 1
STEPS = 30

CREDITS_USED_HEADER = "stability-credit-amount-used"
CREDITS_REMAINING_HEADER = "stability-credit-amount-remaining"
MODERATION_ERROR_NAME = "content_moderation"


def build_payload(prompt: str) -> dict:
    return {
        "text_prompts": [{"text": prompt, "weight": 1}],
        "cfg_scale": CFG_SCALE,
        "height": IMAGE_HEIGHT,
        "width": IMAGE_WIDTH,
        "samples": SAMPLES,
        "steps": STEPS,
    }


def read_credits(response: httpx.Response) -> CreditInfo:
    return CreditInfo(
        credits_used=response.headers.get(CREDITS_USED_HEADER) or UNKNOWN_CREDITS,
        remaining_credits=response.headers.get(CREDITS_REMAINING_HEADER)
        or UNKNOWN_CREDITS,
    )


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _is_valid_artifact(artifact) -> bool:
    if not isinstance(artifact, dict) or not isinstance(artifact.get("base64"), str):
        return False
    seed = artifact.get("seed")
    return seed is None or (isinstance(seed, int) and not isinstance(seed, bool))


class StabilityProvider(BaseImageGenerator):
    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.engine_id = settings.engine_id
        self.async_client = httpx.AsyncClient(
            base_url=settings.api_host,
            headers={
                "Authorization": f"Bearer {settings.stability_api_key}",
                "Accept": "application/json",
            },
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    @property
    def path(self) -> str:
        return f"/v1/generation/{self.engine_id}/text-to-image"

    async def generate_once(self, prompt: str) -> AttemptOutcome:
        try:
            response = await self.async_client.post(
                self.path, json=build_payload(prompt)
            )
        except httpx.HTTPError as e:
            logger.error(f"Request to {self.engine_id} failed: {e!r}")
            return TransientFailure(message=str(e) or type(e).__name__)

        credits = read_credits(response)
        logger.info(
            f"Credits used: {credits.credits_used}, Remaining credits: {credits.remaining_credits}"
        )

        if not response.is_success:
            return self._classify_error(response, credits)

        artifacts = _json_or_empty(response).get("artifacts")
        first = artifacts[0] if isinstance(artifacts, list) and artifacts else None
        if not _is_valid_artifact(first):
            logger.error("No image data in response")
            return TransientFailure(
                message="No image data in response",
                status_code=response.status_code,
                credits=credits,
            )

        logger.info("API response data received successfully")
        return AttemptSuccess(
            result=GenerationResult(
                images=[GeneratedImage(base64=first["base64"], seed=first.get("seed"))],
                credits_used=credits.credits_used,
                remaining_credits=credits.remaining_credits,
            )
        )

    def _classify_error(
        self, response: httpx.Response, credits: CreditInfo
    ) -> AttemptOutcome:
        error_data = _json_or_empty(response)
        logger.error(f"API error response ({response.status_code}): {error_data}")
        message = error_data.get("message") or f"API error: {response.status_code}"

        if error_data.get("name") == MODERATION_ERROR_NAME:
            # Moderation rejections are not billed.
            credits = credits.model_copy(update={"credits_used": "0"})
            return PermanentFailure(
                message=message,
                status_code=response.status_code,
                moderated=True,
                credits=credits,
            )
        if response.status_code == 400:
            return PermanentFailure(
                message=message, status_code=response.status_code, credits=credits
            )
        return TransientFailure(
            message=message, status_code=response.status_code, credits=credits
        )

    async def close(self):
        await self.async_client.aclose()
