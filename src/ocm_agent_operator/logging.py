"""Structured JSON logging for the OCM Agent Operator.

Resource events are written as one JSON object per line, so they can be
filtered by OcmAgent, event, reason or correlation ID.
"""

import json
import logging
import sys
from typing import Any

from .constants import CONTROLLER_NAME
from .utils.context import log_context
from .utils.errors import sanitize_dict

# Client libraries that log every request
NOISY_LOGGERS = ("kubernetes.client.rest", "urllib3.connectionpool")


def setup_structured_logging(level: str = "INFO") -> None:
    """Send bare log messages to stdout at ``level``."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def log_resource_event(
    logger: logging.Logger,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    controller: str = CONTROLLER_NAME,
    **kwargs: Any,
) -> None:
    """Log one structured event about a resource.

    Context fields (correlation ID, reconciled OcmAgent) and ``kwargs`` follow
    the standard fields. Secret-looking values are redacted.
    """
    if not logger.isEnabledFor(level):
        return
    record = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    record.update(log_context(kwargs))
    logger.log(level, json.dumps(sanitize_dict(record), default=str))
