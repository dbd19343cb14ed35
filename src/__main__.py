"""
Main entry point for the synthetic monitoring application.

This module initializes and runs the synthetic monitoring system. It sets up logging,
loads the monitor definitions, creates the shared HTTP session, starts one scheduler
per monitor and handles graceful shutdown when the application is terminated.
"""

import asyncio
import logging
import sys
from typing import List, Tuple

import aiohttp

from synthetic_monitor.config import MonitoringContext, get_context
from synthetic_monitor.config.http_config import get_http_session
from synthetic_monitor.config.logging_config import configure_logging
from synthetic_monitor.config.monitor_loader import load_monitors
from synthetic_monitor.domain import MonitorDefinition
from synthetic_monitor.errors import ConfigurationError
from synthetic_monitor.executor.aiohttp_executor import AiohttpRequestExecutor
from synthetic_monitor.processor.logging_processor import LoggingResultProcessor
from synthetic_monitor.runner import ChainRunner
from synthetic_monitor.scheduler.periodic_scheduler import MonitorScheduler


async def main(context: MonitoringContext, monitors: Tuple[MonitorDefinition, ...]) -> None:
    """
    Set up and run the synthetic monitoring application.

    This function initializes all components of the monitoring system:
    1. Creates an HTTP session for making requests
    2. Creates the executor, the result processor and the chain runner
    3. Starts one scheduler per monitor definition
    4. Waits until the application is cancelled
    5. Stops every scheduler, letting in-flight ticks finish, and closes the session

    Args:
        context: Configuration context containing all application settings.
        monitors: The monitors to run.

    Returns:
        None
    """
    logger: logging.Logger = logging.getLogger(__name__)
    logger.info("Starting application...")

    # Initialize HTTP session for making requests
    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")

    runner = ChainRunner(
        executor=AiohttpRequestExecutor(session=http_session),
        processor=LoggingResultProcessor(),
    )
    schedulers: List[MonitorScheduler] = [MonitorScheduler(monitor, runner) for monitor in monitors]

    try:
        for scheduler in schedulers:
            await scheduler.start()
        logger.info(f"{len(schedulers)} monitor(s) started. Waiting for ticks...")
        await asyncio.Event().wait()

    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
    finally:
        # Ensure all resources are properly closed during shutdown
        logger.info("Shutting down resources...")
        for scheduler in schedulers:
            if scheduler.is_running:
                await scheduler.stop()
        await http_session.close()
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    try:
        # Parse command-line arguments and environment variables
        synthetic_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(synthetic_monitor_context)

        try:
            monitor_definitions = load_monitors(
                synthetic_monitor_context.monitors_file, synthetic_monitor_context.default_timeout
            )
        except ConfigurationError as e:
            logging.error(f"Cannot start: {e}")
            sys.exit(2)

        # Run the main application
        asyncio.run(main(synthetic_monitor_context, monitor_definitions))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")
