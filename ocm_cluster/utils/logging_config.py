# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Logging configuration for the reconciliation engine."""

import logging
from typing import Optional

from ..config import Settings, settings as get_default_settings
from .correlation import CorrelationIDFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Loggers that emit HTTP request/response detail
TRANSPORT_LOGGERS = ("urllib3", "requests", "ocm_cluster.clients")


def configure_logging(config: Optional[Settings] = None) -> None:
    """
    Configure root logging for the engine.

    Installs a console handler using the engine format and stamps records
    with the operation correlation ID. When the transport verbosity
    override is set to DEBUG the HTTP loggers are lowered to DEBUG as well.

    Args:
        config: Settings to use. Defaults to the process-wide settings.
    """
    config = config or get_default_settings()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIDFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    if config.transport_debug:
        for name in TRANSPORT_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)
        root_logger.setLevel(min(level, logging.DEBUG))
        logging.getLogger(__name__).debug("Transport debug logging enabled")
