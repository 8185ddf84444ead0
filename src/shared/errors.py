"""
Shared user-visible messages and error formatting.

User-visible messages must be clear and actionable. Remote failures are never
shown to the user; format_remote_error() only renders them for the logs.
"""
import httpx
from pydantic import ValidationError

SUPPORT_EMAIL = "primoboostai@gmail.com"


class AppErrors:
    """Centralized actionable messages."""

    CHAT_FALLBACK = (
        "I can help you with resume optimization, ATS scores, job listings, "
        "interview prep, pricing, and more.\n\n"
        "Could you rephrase your question? Or feel free to email "
        f"{SUPPORT_EMAIL} for personalized support."
    )

    CHAT_UNAVAILABLE = (
        "I'm having trouble responding right now. Please try again or email "
        f"{SUPPORT_EMAIL} for quick support."
    )

    QUESTION_EMPTY = "Question is empty."

    SESSION_NOT_FOUND = "Chat session not found."

    INVALID_FEATURE = "Unknown add-on feature."

    INVALID_SEVERITY = "Severity must be one of info, success, warning, error."

    INVALID_WIDTH = "width must be a non-negative integer."

    PATH_REQUIRED = "path is required."

    BODY_NOT_OBJECT = "Request body must be a JSON object."

    AUTH_UNAVAILABLE = "Could not verify your sign-in. Please try again."


def format_remote_error(error: Exception) -> str:
    """Format a remote completion failure for logging."""
    if isinstance(error, httpx.TimeoutException):
        return f"Remote completion timed out: {error}"

    if isinstance(error, httpx.HTTPStatusError):
        return f"Remote completion returned HTTP {error.response.status_code}"

    if isinstance(error, httpx.TransportError):
        return f"Remote completion connection error: {error}"

    if isinstance(error, ValidationError):
        return f"Remote completion payload malformed ({error.error_count()} errors)"

    if isinstance(error, ValueError):
        return f"Remote completion payload is not JSON: {error}"

    return f"Remote completion error: {error}"
