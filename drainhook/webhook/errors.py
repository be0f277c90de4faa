"""Failure kinds raised or reported by the webhook notifier."""

from typing import Optional


class WebhookError(Exception):
    """Base class for every webhook failure."""


class TemplateParseError(WebhookError):
    """The template source is not valid template syntax."""


class TemplateExecutionError(WebhookError):
    """The template could not be rendered against a notification record."""


class RequestConstructionError(WebhookError):
    """The POST request could not be built, usually a malformed URL."""


class HeaderDecodeError(WebhookError):
    """``webhook_headers`` is not a JSON object of string values."""


class TransportError(WebhookError):
    """The HTTP exchange failed: connection, DNS, proxy or timeout."""


class UnsuccessfulStatusError(WebhookError):
    """The endpoint answered with a status outside 200..299."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Received Status Code {status_code}")
        self.status_code = status_code
