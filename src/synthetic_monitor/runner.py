"""
Chain runner for the synthetic monitoring system.

This module provides the ChainRunner class, which executes the requests of a
monitor in declared order, threading the variable store from one request to the
next. The monitoring chain stops at its first failure; the cleanup chain always
runs every request and starts from the monitoring chain's final store.
"""

import logging
import secrets
import time
from typing import List, Mapping, Optional, Sequence, Tuple

from .contracts import RequestExecutor, ResultProcessor
from .domain import (
    ChainResult,
    MonitorDefinition,
    Phase,
    RequestOutcome,
    RequestSpec,
    Variable,
    VariableOrigin,
    VariableStore,
)
from .errors import ExecutionError

# Module logger
logger = logging.getLogger(__name__)

RANDOM_VARIABLE_NAME = "random-8"


def seed_store(variables: Mapping[str, str]) -> VariableStore:
    """
    Creates the initial variable store of a run.

    The store starts with the built-in 'random-8' variable, a fresh string of
    eight hexadecimal characters for every run, followed by the user-provided
    variables in their declared order.

    Args:
        variables: The monitor's user-provided variables.

    Returns:
        VariableStore: The seeded store.
    """
    seeded: List[Variable] = [
        Variable(RANDOM_VARIABLE_NAME, VariableOrigin.PROVIDED, secrets.token_hex(4))
    ]
    seeded.extend(
        Variable(name, VariableOrigin.PROVIDED, value) for name, value in variables.items()
    )
    return VariableStore(seeded)


class ChainRunner:
    """
    Executes request chains with a shared, growing variable scope.

    The runner is stateless between calls; every run gets its own store, so a
    single runner can serve any number of monitors.
    """

    def __init__(self, executor: RequestExecutor, processor: ResultProcessor) -> None:
        """
        Initializes a new ChainRunner instance.

        Args:
            executor: Component that performs a single request.
            processor: Component that reports the outcome of every executed request.
        """
        self._executor: RequestExecutor = executor
        self._processor: ResultProcessor = processor

    async def _execute(
        self, monitor_name: str, spec: RequestSpec, store: VariableStore, phase: Phase
    ) -> RequestOutcome:
        """
        Executes one request, turning any unexpected executor failure into a failed outcome.

        Returns:
            RequestOutcome: The executor's outcome, or a failed outcome wrapping
                the exception the executor raised.
        """
        start_time = time.monotonic()
        try:
            return await self._executor.execute(spec, store, phase)
        except Exception as e:
            logger.exception(
                f"[{monitor_name}] executor '{type(self._executor).__name__}' raised while running "
                f"{phase.value} request '{spec.name}': {e}"
            )
            error = ExecutionError(f"unexpected {type(e).__name__}: {e}", spec.name)
            error.__cause__ = e
            return RequestOutcome(
                spec=spec,
                phase=phase,
                error=error,
                start_time=start_time,
                end_time=time.monotonic(),
                status_code=None,
                extracted=(),
            )

    async def _report(self, monitor_name: str, outcome: RequestOutcome) -> None:
        try:
            await self._processor.process(monitor_name, outcome)
        except Exception as e:
            logger.exception(
                f"Processor '{type(self._processor).__name__}' failed for request "
                f"'{outcome.spec.name}' with error: {e}"
            )

    async def run_chain(
        self,
        monitor_name: str,
        specs: Sequence[RequestSpec],
        store: VariableStore,
        stop_on_error: bool,
        phase: Phase,
    ) -> ChainResult:
        """
        Runs the given requests in order.

        Each request sees the initial store plus the variables extracted by
        every earlier successful request of this chain. A failed request
        contributes no variables.

        Args:
            monitor_name: Name of the monitor, used for logging.
            specs: The requests of the chain, in execution order.
            store: The initial variable store.
            stop_on_error: If True, the first failure ends the chain and the
                remaining requests are skipped. If False, every request runs.
            phase: The chain being run.

        Returns:
            ChainResult: The final store, the first error encountered (or None)
                and the outcomes of the executed requests.
        """
        first_error: Optional[Exception] = None
        outcomes: List[RequestOutcome] = []

        for spec in specs:
            logger.debug(f"[{monitor_name}] executing {phase.value} request '{spec.name}'")

            outcome = await self._execute(monitor_name, spec, store, phase)
            outcomes.append(outcome)
            await self._report(monitor_name, outcome)

            if outcome.error is not None:
                if first_error is None:
                    first_error = outcome.error
                if stop_on_error:
                    skipped = len(specs) - len(outcomes)
                    if skipped:
                        logger.debug(
                            f"[{monitor_name}] skipping {skipped} remaining {phase.value} request(s) "
                            f"after '{spec.name}' failed"
                        )
                    break
                continue

            store = store.extend(outcome.extracted)

        return ChainResult(store=store, first_error=first_error, outcomes=tuple(outcomes))

    async def run_monitor(self, monitor: MonitorDefinition) -> Tuple[ChainResult, ChainResult]:
        """
        Performs one tick of a monitor: the monitoring chain, then the cleanup chain.

        The cleanup chain always runs and is seeded with the store the
        monitoring chain ended with.

        Args:
            monitor: The monitor to run.

        Returns:
            Tuple[ChainResult, ChainResult]: The monitoring and cleanup results.
        """
        store = seed_store(monitor.variables)

        monitoring = await self.run_chain(
            monitor.name, monitor.requests, store, stop_on_error=True, phase=Phase.MONITORING
        )
        cleanup = await self.run_chain(
            monitor.name, monitor.cleanup, monitoring.store, stop_on_error=False, phase=Phase.CLEANUP
        )

        if monitoring.first_error is None:
            logger.info(f"[{monitor.name}] monitoring chain passed ({len(monitoring.outcomes)} requests)")
        else:
            logger.warning(f"[{monitor.name}] monitoring chain failed: {monitoring.first_error}")

        return monitoring, cleanup
