"""Error taxonomy for the workspace chat client."""

from __future__ import annotations


AUTH_FAILED_MESSAGE = "Authentication failed. Please check your API key."
NOT_FOUND_MESSAGE = "API endpoint not found. Please check your configuration."
SERVER_ERROR_MESSAGE = "Server error. Please try again later."
CONNECTIVITY_MESSAGE = "Sorry, I'm having trouble connecting right now. Please try again."


class ChatClientError(Exception):
    """Base class for every error raised by the client."""


class ConfigError(ChatClientError):
    """Configuration could not be used."""


class ConfigMissing(ConfigError):
    """Config file absent, unreadable or not a JSON object."""


class ConfigIncomplete(ConfigError):
    """A required config field is blank after merging defaults."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing config fields: {', '.join(self.missing)}")


class NetworkError(ChatClientError):
    """The request never produced an HTTP response (timeout, DNS, refused...)."""


class ServerError(ChatClientError):
    """The remote API answered with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}")


class ParseError(ChatClientError):
    """The response body is not the expected JSON object."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)


class EngineUnavailable(ChatClientError):
    """No speech synthesis engine can be used."""


def user_message_for_status(status_code: int | None) -> str:
    """Map an HTTP status (None for transport failures) to a user-facing message."""
    if status_code == 401:
        return AUTH_FAILED_MESSAGE
    if status_code == 404:
        return NOT_FOUND_MESSAGE
    if status_code is not None and status_code >= 500:
        return SERVER_ERROR_MESSAGE
    return CONNECTIVITY_MESSAGE


def user_message_for(exc: ChatClientError) -> str:
    """Return the user-facing message for a request failure."""
    if isinstance(exc, ServerError):
        return user_message_for_status(exc.status_code)
    return user_message_for_status(None)
