"""
Core interfaces for the synthetic monitoring system.

This module defines the abstract base classes that form the foundation of the
monitoring system's architecture. These interfaces establish a clear contract
for implementations and enable a modular, pluggable design.
"""

import abc

from .domain import Phase, RequestOutcome, RequestSpec, VariableStore


class RequestExecutor(abc.ABC):
    """
    Abstract interface for a component that performs a single request of a chain.

    Its responsibility is to encapsulate the network I/O for a given RequestSpec
    and return a structured outcome.
    """

    @abc.abstractmethod
    async def execute(self, spec: RequestSpec, store: VariableStore, phase: Phase) -> RequestOutcome:
        """
        Renders, sends and validates the request described by spec.

        Args:
            spec: The request to perform.
            store: The variables available to the request's templates.
            phase: The chain the request belongs to.

        Returns:
            RequestOutcome: The outcome of the request, including any variables
                extracted from the response.

        Raises:
            Exception: Implementations should capture execution errors in the
                RequestOutcome rather than raising them.
        """
        pass


class ResultProcessor(abc.ABC):
    """
    Abstract interface for a component that processes request outcomes.

    This is the outbound side of the chain runner: every executed request is
    reported exactly once, whether it succeeded or failed.
    """

    @abc.abstractmethod
    async def process(self, monitor_name: str, outcome: RequestOutcome) -> None:
        """
        Processes a single RequestOutcome.

        Args:
            monitor_name: The name of the monitor the request belongs to.
            outcome: The outcome of one executed request.

        Returns:
            None
        """
        pass
