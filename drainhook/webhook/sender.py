"""POST a rendered drain notification to the configured webhook.

:func:`send_webhook` makes exactly one attempt and never raises: every
failure is logged as a single ``Webhook Error: ...`` line and reported
through the returned :class:`DeliveryResult`.
"""

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import httpx

from drainhook.config import Settings
from drainhook.models import InterruptionEvent, NodeMetadata, NotificationRecord
from drainhook.webhook.errors import (
    HeaderDecodeError,
    RequestConstructionError,
    TemplateExecutionError,
    TemplateParseError,
    TransportError,
    UnsuccessfulStatusError,
    WebhookError,
)
from drainhook.webhook.template import execute_template, parse_template

logger = logging.getLogger(__name__)

#: Total time budget for the request, in seconds.
REQUEST_TIMEOUT = 5.0
#: Seconds an idle pooled connection is kept open.
IDLE_CONNECTION_TIMEOUT = 1.0


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one :func:`send_webhook` call."""

    ok: bool
    status_code: Optional[int] = None
    error: Optional[WebhookError] = None


def decode_headers(raw: str) -> dict[str, str]:
    """Parse ``webhook_headers`` into a header mapping.

    Raises:
        HeaderDecodeError: *raw* is not JSON, not an object, or holds a
            non-string value.
    """
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HeaderDecodeError(str(exc)) from exc
    if not isinstance(decoded, dict):
        raise HeaderDecodeError(f"expected a JSON object, got {type(decoded).__name__}")
    for key, value in decoded.items():
        if not isinstance(value, str):
            raise HeaderDecodeError(
                f"value for header {key!r} must be a string, got {type(value).__name__}"
            )
    return decoded


def _proxy_for(settings: Settings) -> Optional[httpx.Proxy]:
    """Return the proxy for every webhook request, or ``None``."""
    if not settings.webhook_proxy:
        return None
    return httpx.Proxy(settings.webhook_proxy)


def _build_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
) -> httpx.AsyncClient:
    try:
        proxy = _proxy_for(settings)
    except (httpx.InvalidURL, ValueError) as exc:
        raise TransportError(f"invalid proxy URL {settings.webhook_proxy!r}: {exc}") from exc
    # An injected transport also replaces the proxy transport httpx mounts for "all://".
    mounts = {"all://": transport} if transport is not None else None
    try:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT),
            limits=httpx.Limits(keepalive_expiry=IDLE_CONNECTION_TIMEOUT),
            proxy=proxy,
            transport=transport,
            mounts=mounts,
            trust_env=False,
        )
    except Exception as exc:
        raise TransportError(f"unable to create HTTP client: {exc}") from exc


def _build_request(url: str, body: bytes) -> httpx.Request:
    try:
        return httpx.Request("POST", url, content=body)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        raise RequestConstructionError(str(exc)) from exc


async def _exchange(request: httpx.Request, client: httpx.AsyncClient) -> int:
    async with client:
        response = await client.send(request, stream=True)
        try:
            return response.status_code
        finally:
            await response.aclose()


def _run(coro):
    """Run *coro* to completion, off-thread when a loop is already running."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _post(
    request: httpx.Request,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
) -> int:
    """Send *request* and return the status code.

    The whole exchange, from connecting to receiving the status line and
    headers, must finish within :data:`REQUEST_TIMEOUT` seconds.  The
    response is opened as a stream and closed without reading the body,
    so the connection is released on every path.

    Raises:
        TransportError: The client could not be built, the exchange
            failed, or the deadline passed.
    """
    client = _build_client(settings, transport)
    timeout = REQUEST_TIMEOUT
    try:
        return _run(asyncio.wait_for(_exchange(request, client), timeout))
    except asyncio.TimeoutError as exc:
        raise TransportError(f"request exceeded the {timeout:g}s deadline") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportError(str(exc) or type(exc).__name__) from exc


def _deliver(
    metadata: NodeMetadata,
    event: InterruptionEvent,
    settings: Settings,
    pods: str,
    transport: Optional[httpx.AsyncBaseTransport],
    log: logging.Logger,
) -> DeliveryResult:
    try:
        template = parse_template(settings.webhook_template)
    except TemplateParseError as exc:
        log.info("Webhook Error: Template parsing failed - %s", exc)
        return DeliveryResult(ok=False, error=exc)

    record = NotificationRecord(
        node_metadata=metadata,
        interruption_event=event,
        cluster=settings.cluster_name,
        pods=pods,
    )

    try:
        body = execute_template(template, record)
    except TemplateExecutionError as exc:
        log.info("Webhook Error: Template execution failed - %s", exc)
        return DeliveryResult(ok=False, error=exc)

    try:
        request = _build_request(settings.webhook_url, body)
    except RequestConstructionError as exc:
        log.info("Webhook Error: Http NewRequest failed - %s", exc)
        return DeliveryResult(ok=False, error=exc)

    try:
        headers = decode_headers(settings.webhook_headers)
    except HeaderDecodeError as exc:
        log.info("Webhook Error: Header Unmarshal failed - %s", exc)
        return DeliveryResult(ok=False, error=exc)
    for key, value in headers.items():
        request.headers[key] = value

    try:
        status = _post(request, settings, transport)
    except TransportError as exc:
        log.info("Webhook Error: Client Do failed - %s", exc)
        return DeliveryResult(ok=False, error=exc)

    if status < 200 or status > 299:
        log.info("Webhook Error: Received Status Code %d", status)
        return DeliveryResult(ok=False, status_code=status, error=UnsuccessfulStatusError(status))

    log.info("Webhook Success: Notification Sent!")
    return DeliveryResult(ok=True, status_code=status)


def send_webhook(
    metadata: NodeMetadata,
    event: InterruptionEvent,
    settings: Settings,
    pods: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    log: Optional[logging.Logger] = None,
) -> DeliveryResult:
    """Render the configured template and POST it to ``webhook_url``.

    One attempt, no retries.  The call blocks for at most
    :data:`REQUEST_TIMEOUT` seconds of network time.  Exactly one outcome
    line is logged at INFO.

    Args:
        metadata: Node the event concerns.
        event: The detected interruption.
        settings: Source of the URL, template, headers, proxy and
            cluster name.
        pods: Pre-formatted description of the pods on the node.
        transport: Optional async httpx transport, mainly for tests.
        log: Log sink for the outcome line; defaults to this module's
            logger.

    Returns:
        A :class:`DeliveryResult`; failures are never raised.
    """
    return _deliver(metadata, event, settings, pods, transport, log or logger)
