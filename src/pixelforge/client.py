"""
Python counterpart of the browser page: one prompt in, one image out.

The client keeps the same state the page shows (loading flag, error, image,
credit counters) and allows a single generation in flight at a time.
"""

from pathlib import Path
from typing import Optional
import logging

import httpx
from pydantic import BaseModel, ValidationError

from pixelforge.errors import ClientBusyError
from pixelforge.models import GenerationFailure, GenerationResult
from pixelforge.utils import generate_filename, save_image_from_b64

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/image-generator"
EMPTY_PROMPT_MESSAGE = "Please enter a prompt"
DEFAULT_ERROR_MESSAGE = "Failed to generate image"
NO_IMAGE_MESSAGE = "No image generated"


class ClientState(BaseModel):
    is_loading: bool = False
    error: Optional[str] = None
    current_prompt: Optional[str] = None
    image_b64: Optional[str] = None
    seed: Optional[int] = None
    credits_used: Optional[str] = None
    remaining_credits: Optional[str] = None

    @property
    def image_data_url(self) -> Optional[str]:
        if self.image_b64 is None:
            return None
        return f"data:image/png;base64,{self.image_b64}"


class GenerationClient:
    def __init__(
        self,
        server_url: str,
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.http = httpx.Client(base_url=server_url, timeout=timeout, transport=transport)
        self.state = ClientState()

    def submit(self, prompt: str) -> ClientState:
        if self.state.is_loading:
            raise ClientBusyError("A generation is already in progress")

        if not prompt or not prompt.strip():
            self.state.error = EMPTY_PROMPT_MESSAGE
            return self.state

        self.state.image_b64 = None
        self.state.seed = None
        self.state.is_loading = True
        self.state.error = None
        self.state.current_prompt = prompt
        try:
            self._generate(prompt)
        except httpx.HTTPError as e:
            logger.error(f"Request to {self.http.base_url} failed: {e}")
            self.state.error = str(e) or DEFAULT_ERROR_MESSAGE
        finally:
            self.state.is_loading = False
        return self.state

    def _generate(self, prompt: str):
        response = self.http.post(GENERATE_PATH, json={"prompt": prompt})
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            try:
                failure = GenerationFailure.model_validate(data)
            except ValidationError:
                failure = GenerationFailure(error=DEFAULT_ERROR_MESSAGE)
            self._update_credits(failure.credits_used, failure.remaining_credits)
            self.state.error = failure.error or DEFAULT_ERROR_MESSAGE
            return

        try:
            result = GenerationResult.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed response from server: {e}")
            self.state.error = NO_IMAGE_MESSAGE
            return
        self._update_credits(result.credits_used, result.remaining_credits)
        if not result.images:
            self.state.error = NO_IMAGE_MESSAGE
            return
        self.state.image_b64 = result.images[0].base64
        self.state.seed = result.images[0].seed

    def _update_credits(self, credits_used: Optional[str], remaining: Optional[str]):
        if credits_used:
            self.state.credits_used = credits_used
        if remaining:
            self.state.remaining_credits = remaining

    def save_image(self, output: Optional[Path] = None) -> Optional[Path]:
        if self.state.image_b64 is None:
            return None
        output = output or Path(generate_filename(self.state.current_prompt))
        return save_image_from_b64(self.state.image_b64, output)

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
