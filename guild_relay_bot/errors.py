from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "❌ Something went wrong with the bot. Please try again later."
SERVICE_UNAVAILABLE_MESSAGE = "❌ The AI service is currently unavailable. Please try again later."
IMAGE_COUNT_UNSUPPORTED_MESSAGE = (
    "⚠️ This model only supports generating 1 image at a time. "
    "Please try again without the count parameter or set it to 1."
)


class RelayError(Exception):
    """Base error for failures that map to one user-facing reply."""

    user_message = GENERIC_FAILURE_MESSAGE


class TransportFailure(RelayError):
    pass


class CompletionUnavailable(TransportFailure):
    user_message = SERVICE_UNAVAILABLE_MESSAGE


class ImageCountUnsupported(TransportFailure):
    user_message = IMAGE_COUNT_UNSUPPORTED_MESSAGE


class DecodeFailure(RelayError):
    pass


class PersistenceFailure(RelayError):
    pass


class UnresolvedReference(RelayError):
    def __init__(self, reference: str) -> None:
        super().__init__(f"Could not find channel '{reference}'")
        self.reference = reference


class PlayerNotFound(RelayError):
    pass
