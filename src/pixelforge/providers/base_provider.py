from abc import ABC, abstractmethod
from pixelforge.models import AttemptOutcome


class BaseImageGenerator(ABC):
    @abstractmethod
    async def generate_once(self, prompt: str) -> AttemptOutcome:
        """
        Makes exactly one upstream call for the given prompt.
        Expected failures are returned as outcomes, never raised.
        """
        pass

    async def close(self):
        pass
