"""
HTTP client configuration module for the synthetic monitoring system.

This module provides functionality to create and configure the HTTP client
session shared by every monitor, using the aiohttp library.
"""

import logging

import aiohttp

from synthetic_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create and configure an HTTP client session based on the provided configuration.

    Using a shared session is recommended for performance reasons. Timeouts are
    applied per request, so the session itself has no overall timeout.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session that can be used to make HTTP requests.
    """
    connector = aiohttp.TCPConnector(limit=context.connection_limit)
    logger.debug(f"Creating HTTP session with connection limit {context.connection_limit}")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=None),
    )
