from typing import Optional

UNKNOWN_CREDITS = "Unknown"


class PixelforgeError(Exception):
    """Base error. Carries the HTTP status and credit counters it is reported with."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        credits_used: Optional[str] = None,
        remaining_credits: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.credits_used = credits_used
        self.remaining_credits = remaining_credits

    def to_envelope(self) -> dict:
        envelope = {"error": self.message}
        if self.credits_used is not None:
            envelope["creditsUsed"] = self.credits_used
        if self.remaining_credits is not None:
            envelope["remainingCredits"] = self.remaining_credits
        return envelope


class InvalidInput(PixelforgeError):
    status_code = 400


class ConfigurationError(PixelforgeError):
    status_code = 500


class PermanentUpstreamError(PixelforgeError):
    """Upstream rejected the request in a way retrying cannot fix."""

    status_code = 400


class TransientUpstreamError(PixelforgeError):
    """A single attempt failed in a way that may succeed on retry."""

    status_code = 500


class ExhaustedRetries(PixelforgeError):
    status_code = 500


class UnexpectedError(PixelforgeError):
    status_code = 500


class ClientBusyError(PixelforgeError):
    """Raised by the request client when a generation is already in flight."""

    status_code = 409
