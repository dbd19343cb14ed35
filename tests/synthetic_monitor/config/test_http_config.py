"""
Unit tests for the HTTP configuration module.

The tests follow the Arrange-Act-Assert (AAA) pattern.
"""

import aiohttp
import pytest

from synthetic_monitor.config.http_config import get_http_session
from synthetic_monitor.config.monitoring_context import MonitoringContext


@pytest.mark.asyncio
async def test_get_http_session_should_apply_connection_limit() -> None:
    """
    Tests that the session's connector uses the configured connection limit.
    """
    # Arrange
    context = MonitoringContext(
        monitors_file="monitors.json",
        worker_id="test-worker",
        logging_type="dev",
        logging_config_file="",
        default_timeout="10s",
        connection_limit=7,
    )

    # Act
    session = get_http_session(context)

    # Assert
    try:
        assert isinstance(session, aiohttp.ClientSession)
        assert session.connector.limit == 7
        assert session.timeout.total is None
    finally:
        await session.close()
