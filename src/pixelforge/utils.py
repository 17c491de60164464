import base64
import binascii
import io
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base: float = 1.0) -> float:
    """Seconds to wait before retry ``attempt`` (1-based): base, 2*base, 4*base..."""
    return base * 2 ** (attempt - 1)


def sanitize_filename(name: str) -> str:
    """Sanitizes a string to be a valid filename."""
    name = re.sub(r'[<>:"/\\|?*\x00-\x1F]', "_", name)
    name = re.sub(r"\s+", "_", name)
    return name[:100]


def generate_filename(prompt: Optional[str] = None, extension: str = "png") -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if prompt:
        sane_prompt = "".join(
            c if c.isalnum() or c in (" ", "-") else "_" for c in prompt[:30]
        ).strip()
        sane_prompt = sanitize_filename(sane_prompt)
        if sane_prompt:
            return f"{sane_prompt}_{timestamp}.{extension}"
    return f"image_{timestamp}.{extension}"


def decode_image(b64_data: str) -> bytes:
    """Decodes base64 image data, accepting a ``data:`` URL as well."""
    if b64_data.startswith("data:image/"):
        _, b64_data = b64_data.split(",", 1)
    return base64.b64decode(b64_data, validate=True)


def save_image_from_b64(b64_data: str, output_path: Path) -> Optional[Path]:
    """Writes the decoded image bytes unchanged; returns None if they are not an image."""
    try:
        image_bytes = decode_image(b64_data)
    except (binascii.Error, ValueError) as e:
        logger.error(f"Error decoding base64 image: {e}")
        return None
    try:
        Image.open(io.BytesIO(image_bytes)).verify()
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Received data is not a valid image: {e}")
        return None
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(image_bytes)
    logger.info(f"Image saved to {output_path}")
    return output_path
