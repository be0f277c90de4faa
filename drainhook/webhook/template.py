"""Render webhook payloads from user-supplied templates.

Templating is exposed as a two-step capability, :meth:`parse` then
:meth:`execute`, so callers can validate a template without having an
event to render.  :class:`JinjaTemplateEngine` is the concrete engine:
Jinja2 in an immutable sandbox, with undefined names treated as errors
so a typo in a field name fails instead of rendering an empty string.

Example::

    {"text": "{{ Kind }} on {{ InstanceID }} in {{ Cluster }}"}
"""

from typing import Any, Mapping, Protocol, Union

from jinja2 import DictLoader, StrictUndefined, Template, TemplateError, TemplateSyntaxError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from drainhook.models import NotificationRecord
from drainhook.webhook.errors import TemplateExecutionError, TemplateParseError

#: Name given to every parsed webhook template; shows up in diagnostics.
TEMPLATE_NAME = "message"

TemplateData = Union[NotificationRecord, Mapping[str, Any]]


class TemplateEngine(Protocol):
    """Parse / execute capability used by the sender and validator."""

    def parse(self, source: str) -> Any:
        ...

    def execute(self, template: Any, data: TemplateData) -> bytes:
        ...


class JinjaTemplateEngine:
    """Immutable-sandbox Jinja2 implementation of :class:`TemplateEngine`.

    Autoescaping is off and trailing newlines are kept, so the body
    matches the source byte for byte outside of substitutions.
    """

    def parse(self, source: str) -> Template:
        """Compile *source* into a template named ``message``.

        Raises:
            TemplateParseError: The source is not valid Jinja2.
        """
        env = ImmutableSandboxedEnvironment(
            loader=DictLoader({TEMPLATE_NAME: source}),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        try:
            return env.get_template(TEMPLATE_NAME)
        except TemplateSyntaxError as exc:
            raise TemplateParseError(str(exc)) from exc

    def execute(self, template: Template, data: TemplateData) -> bytes:
        """Render *template* against *data* into UTF-8 bytes.

        Args:
            template: A template returned by :meth:`parse`.
            data: A :class:`NotificationRecord` or an already flattened
                context mapping.

        Raises:
            TemplateExecutionError: Rendering referenced an undefined
                name, called something unsupported, or raised.
        """
        if isinstance(data, NotificationRecord):
            context = data.template_context()
        else:
            context = dict(data)

        buffer = bytearray()
        try:
            for chunk in template.generate(**context):
                buffer += chunk.encode("utf-8")
        except TemplateError as exc:
            raise TemplateExecutionError(str(exc)) from exc
        except Exception as exc:
            raise TemplateExecutionError(f"{type(exc).__name__}: {exc}") from exc
        return bytes(buffer)


default_engine: TemplateEngine = JinjaTemplateEngine()


def parse_template(source: str) -> Template:
    """Parse *source* with the default engine."""
    return default_engine.parse(source)


def execute_template(template: Template, data: TemplateData) -> bytes:
    """Execute a parsed template with the default engine."""
    return default_engine.execute(template, data)


def render(source: str, data: TemplateData) -> bytes:
    """Parse and execute in one step."""
    return execute_template(parse_template(source), data)
