"""
Fakes and outcome builders shared by the pixelforge tests
"""
from pixelforge.models import (
    AttemptSuccess,
    CreditInfo,
    GeneratedImage,
    GenerationResult,
    PermanentFailure,
    TransientFailure,
)
from pixelforge.providers.base_provider import BaseImageGenerator


class FakeGenerator(BaseImageGenerator):
    """Replays a fixed list of outcomes, one per attempt."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.prompts = []
        self.closed = False

    async def generate_once(self, prompt):
        self.prompts.append(prompt)
        return self.outcomes.pop(0)

    async def close(self):
        self.closed = True

    @property
    def calls(self):
        return len(self.prompts)


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def success(b64="aW1hZ2U=", seed=42, used="0.2", remaining="99.8"):
    return AttemptSuccess(
        result=GenerationResult(
            images=[GeneratedImage(base64=b64, seed=seed)],
            credits_used=used,
            remaining_credits=remaining,
        )
    )


def transient(message="API error: 503", remaining="50"):
    return TransientFailure(
        message=message,
        status_code=503,
        credits=CreditInfo(credits_used="Unknown", remaining_credits=remaining),
    )


def moderated(message="Your request was flagged by our content moderation system"):
    return PermanentFailure(
        message=message,
        status_code=403,
        moderated=True,
        credits=CreditInfo(credits_used="0", remaining_credits="40"),
    )
