"""
JSON logging for the API.

Every event carries the request ID of the call that produced it, and shop
credentials (admin tokens, OAuth secrets and codes, webhook HMACs) are
masked before anything reaches a handler.
"""

import contextvars
import logging
import os
import re
import sys
import uuid
from pathlib import Path
from typing import Any, Optional

import structlog

MASK = "[REDACTED]"

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Shopify admin, custom-app and shared-secret token prefixes
_TOKEN_RE = re.compile(r"shp(?:at|ca|ss)_[A-Za-z0-9]+")

_MASKED_FIELDS = frozenset({
    "access_token", "accesstoken", "token", "secret", "client_secret",
    "api_secret", "api_key", "password", "authorization", "code", "hmac",
    "x-shopify-access-token",
})


def mask_credentials(value: Any) -> Any:
    """Mask token-looking substrings, descending into dicts and lists."""
    if isinstance(value, str):
        return _TOKEN_RE.sub(MASK, value)
    if isinstance(value, dict):
        return {
            k: MASK if str(k).lower() in _MASKED_FIELDS else mask_credentials(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(mask_credentials(v) for v in value)
    return value


def _mask_event(logger, method_name, event_dict):
    return mask_credentials(event_dict)


def _add_request_id(logger, method_name, event_dict):
    request_id = request_id_var.get()
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


def new_correlation_id(value: Optional[str] = None) -> str:
    """Bind a request ID to the current context.

    Args:
        value: ID supplied by the caller (``X-Request-ID``); a short random
            hex ID is used when missing.

    Returns:
        The request ID now attached to log events.
    """
    request_id = value or uuid.uuid4().hex[:8]
    request_id_var.set(request_id)
    return request_id


def _file_handler(log_file: str, level: str) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    os.chmod(log_file, 0o600)
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Route structlog through the stdlib root logger as JSON lines on stdout.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_file: Also append to this file when set

    Raises:
        ValueError: Unknown level name
    """
    level = level.upper()
    if level not in _LEVELS:
        raise ValueError(f"Invalid logging level: {level}")

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _add_request_id,
            _mask_event,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        logging.getLogger().addHandler(_file_handler(log_file, level))


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    return structlog.get_logger(name)
