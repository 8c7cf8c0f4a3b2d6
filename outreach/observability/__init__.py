"""
Observability: structured logging and request/operation context.

Usage:
    import logging

    from outreach.observability import RequestContext

    logger = logging.getLogger(__name__)

    with RequestContext(operation="repair_gaps"):
        logger.info("Renumbering", extra={"changes": 3})
"""

from .context import RequestContext, get_operation, get_request_id
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_logging,
)

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    "RequestContext",
    "get_operation",
    "get_request_id",
]
