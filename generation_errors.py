"""
Error taxonomy for generation calls.
The orchestrator turns these into user-facing messages; nothing here retries.
"""


class GenerationError(Exception):
    """Base class for failures of a text or image generation call."""

    user_message = "Generation failed. Please try again."


class MissingCredential(GenerationError):
    """No API key could be resolved for the backend. Raised before any network attempt."""

    user_message = (
        "No API key is configured. Open the API key panel, paste your Gemini API key "
        "(https://aistudio.google.com/app/apikey) and try again."
    )


class QuotaExceeded(GenerationError):
    """The backend reported a rate or usage limit."""

    user_message = (
        "The API usage quota has been exceeded. Wait a moment before retrying, "
        "or upgrade your API plan."
    )


class ResultMissing(GenerationError):
    """The call succeeded transport-wise but the payload was empty or malformed."""

    user_message = "The model returned an empty or malformed result. Please try again."


class GenerationFailed(GenerationError):
    """Catch-all transport or model error."""


def user_message(exc: Exception, fallback: str | None = None) -> str:
    """
    Map an exception to the text shown to the user.

    Credential, quota and empty-result failures get their specific guidance;
    generic failures use the operation-specific fallback when one is given.
    """
    if isinstance(exc, (MissingCredential, QuotaExceeded, ResultMissing)):
        return exc.user_message
    if fallback:
        return fallback
    if isinstance(exc, GenerationError):
        return exc.user_message
    return GenerationError.user_message


def is_quota_error(exc: Exception) -> bool:
    """Detect rate/usage-limit failures from any provider SDK or HTTP layer."""
    for attr in ("code", "status_code"):
        if getattr(exc, attr, None) == 429:
            return True
    text = str(exc).lower()
    return (
        "429" in text
        or "resource_exhausted" in text
        or "quota" in text
        or "rate limit" in text
        or ("exceeded" in text and "limit" in text)
    )


def classify_error(exc: Exception) -> GenerationError:
    """Wrap a raw provider exception in the matching GenerationError subclass."""
    if isinstance(exc, GenerationError):
        return exc
    if is_quota_error(exc):
        return QuotaExceeded(str(exc))
    return GenerationFailed(str(exc))
