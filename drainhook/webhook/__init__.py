"""Webhook delivery of node interruption notifications."""

from drainhook.webhook.errors import (
    HeaderDecodeError,
    RequestConstructionError,
    TemplateExecutionError,
    TemplateParseError,
    TransportError,
    UnsuccessfulStatusError,
    WebhookError,
)
from drainhook.webhook.sender import DeliveryResult, send_webhook
from drainhook.webhook.validate import validate_webhook_config

__all__ = [
    "DeliveryResult",
    "HeaderDecodeError",
    "RequestConstructionError",
    "TemplateExecutionError",
    "TemplateParseError",
    "TransportError",
    "UnsuccessfulStatusError",
    "WebhookError",
    "send_webhook",
    "validate_webhook_config",
]
