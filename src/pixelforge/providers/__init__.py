from pixelforge.providers.base_provider import BaseImageGenerator
from pixelforge.providers.stability_provider import StabilityProvider

__all__ = ["BaseImageGenerator", "StabilityProvider"]
