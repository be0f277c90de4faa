"""Startup check that the configured webhook template is usable."""

from drainhook.config import Settings
from drainhook.models import NotificationRecord
from drainhook.webhook.errors import TemplateExecutionError, TemplateParseError
from drainhook.webhook.template import execute_template, parse_template


def validate_webhook_config(settings: Settings) -> None:
    """Parse the template and render it against an empty record.

    Nothing is checked when ``webhook_url`` is empty, since delivery is
    disabled.  No request is sent and nothing is logged.

    Raises:
        TemplateParseError: The template does not parse.
        TemplateExecutionError: The template fails against a record
            whose fields all hold their defaults.
    """
    if not settings.webhook_url:
        return

    try:
        template = parse_template(settings.webhook_template)
    except TemplateParseError as exc:
        raise TemplateParseError(f"Unable to parse webhook template: {exc}") from exc

    try:
        execute_template(template, NotificationRecord())
    except TemplateExecutionError as exc:
        raise TemplateExecutionError(f"Unable to execute webhook template: {exc}") from exc
