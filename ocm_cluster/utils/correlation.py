# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Correlation ID generation and context management for operation tracing.

Each lifecycle operation runs under its own correlation ID so that the log
lines of one create/read/update/delete/import can be grouped together.
"""

import contextvars
import logging
import uuid

logger = logging.getLogger(__name__)

# Context variable to store correlation ID per operation
_correlation_id_context: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def generate_correlation_id() -> str:
    """
    Generate a unique correlation ID using UUID4.

    Returns:
        A unique correlation ID string in UUID4 format
    """
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID in the current context.

    Args:
        correlation_id: The correlation ID to set
    """
    _correlation_id_context.set(correlation_id)


def get_correlation_id() -> str:
    """
    Get the correlation ID from the current context.

    Returns:
        The correlation ID if set, or an empty string if not set
    """
    return _correlation_id_context.get()


def start_operation(operation: str) -> str:
    """
    Assign a fresh correlation ID to the operation running in this context.

    Args:
        operation: Name of the lifecycle operation (for the log line)

    Returns:
        The new correlation ID
    """
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    logger.debug(
        f"Operation '{operation}' started with correlation ID: {correlation_id}",
        extra={"correlation_id": correlation_id},
    )
    return correlation_id


def get_correlation_id_for_logging() -> dict:
    """
    Get correlation ID as a dictionary for use in logging extra fields.

    Returns:
        Dictionary with correlation_id key, or empty dict if not set
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        return {"correlation_id": correlation_id}
    return {}


class CorrelationIDFilter(logging.Filter):
    """Logging filter that stamps every record with the current correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        return True
