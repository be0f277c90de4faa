"""Application configuration via environment variables and defaults."""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_WEBHOOK_TEMPLATE = (
    '{"text":"[NTH][Instance Interruption] EventID: {{ EventID }} - '
    "Kind: {{ Kind }} - Instance: {{ InstanceID }} - Node: {{ NodeName }} - "
    'Description: {{ Description }} - Start Time: {{ StartTime }}"}'
)
DEFAULT_WEBHOOK_HEADERS = '{"Content-type":"application/json"}'

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Global configuration loaded from environment / ``.env`` file.

    Attributes:
        webhook_url: Destination of drain notifications.  An empty
            string disables webhook delivery entirely.
        webhook_template: Jinja2 source rendered into the request body.
        webhook_template_file: Optional path to a template file.  When
            set, its contents replace ``webhook_template`` at load time.
        webhook_headers: JSON object mapping header names to string
            values, attached verbatim to every request.
        webhook_proxy: Proxy URL used for every webhook request, or an
            empty string for a direct connection.
        cluster_name: Cluster identifier exposed to templates as
            ``Cluster``.
        log_level: Python logging level name, case-insensitive.
    """

    webhook_url: str = ""
    webhook_template: str = DEFAULT_WEBHOOK_TEMPLATE
    webhook_template_file: str = ""
    webhook_headers: str = DEFAULT_WEBHOOK_HEADERS
    webhook_proxy: str = ""
    cluster_name: str = ""
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {value!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _load_template_file(self) -> "Settings":
        if self.webhook_template_file:
            path = Path(self.webhook_template_file)
            try:
                self.webhook_template = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ValueError(f"Unable to read webhook template file {path}: {exc}") from exc
        return self


def get_settings() -> Settings:
    """Return a cached :class:`Settings` instance.

    The instance is constructed on first use and reused for the
    lifetime of the process.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


_settings: Settings | None = None
