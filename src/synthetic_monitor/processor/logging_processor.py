"""
Logging result processor implementation.

This module provides the outbound side of the chain runner: a ResultProcessor
that writes one structured log record per executed request. The structured
fields are attached through the 'extra' mapping so that JSON formatters can
emit them as separate keys.
"""

import logging

from synthetic_monitor.contracts import ResultProcessor
from synthetic_monitor.domain import RequestOutcome

# Module logger
logger = logging.getLogger(__name__)


class LoggingResultProcessor(ResultProcessor):
    """
    A ResultProcessor that reports every outcome through the logging module.

    Successful requests are logged at INFO level, failures at ERROR level with
    the error type and message.
    """

    async def process(self, monitor_name: str, outcome: RequestOutcome) -> None:
        """
        Writes a log record describing the outcome.

        Args:
            monitor_name: The name of the monitor the request belongs to.
            outcome: The outcome of one executed request.

        Returns:
            None
        """
        extra = {
            "monitor": monitor_name,
            "request": outcome.spec.name,
            "phase": outcome.phase.value,
            "status_code": outcome.status_code,
            "duration": round(outcome.duration, 6),
        }

        if outcome.succeeded:
            logger.info(
                f"[{monitor_name}] {outcome.phase.value} request '{outcome.spec.name}' succeeded "
                f"with status {outcome.status_code} in {outcome.duration:.3f}s",
                extra={**extra, "outcome": "succeeded"},
            )
        else:
            logger.error(
                f"[{monitor_name}] {outcome.phase.value} request '{outcome.spec.name}' failed: "
                f"{type(outcome.error).__name__}: {outcome.error}",
                extra={**extra, "outcome": "failed", "error": str(outcome.error)},
            )
