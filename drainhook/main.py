"""Process entry point.

Loads settings, configures logging and checks the webhook template so a
broken configuration stops the process before any event is handled.
"""

import logging

from pydantic import ValidationError

from drainhook import __version__
from drainhook.config import get_settings
from drainhook.webhook import WebhookError, validate_webhook_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def main() -> int:
    """Validate the webhook configuration and report the result.

    Returns:
        ``0`` when the configuration is usable, ``1`` otherwise.
    """
    try:
        cfg = get_settings()
    except ValidationError as exc:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error("Invalid configuration: %s", exc)
        return 1

    logging.basicConfig(level=cfg.log_level, format=LOG_FORMAT)
    logger.info("drainhook v%s starting up", __version__)

    try:
        validate_webhook_config(cfg)
    except WebhookError as exc:
        logger.error("Webhook configuration is invalid: %s", exc)
        return 1

    if cfg.webhook_url:
        logger.info("Webhook notifications enabled")
    else:
        logger.info("Webhook notifications disabled (no webhook URL configured)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
