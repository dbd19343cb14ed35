"""
Error types raised while executing request chains.

Every error carries the name of the request it originated from so that it can
be logged and reported without additional context. Executors capture these
errors in the RequestOutcome; the chain runner decides whether they halt the
chain.
"""

from typing import Iterable, Optional

from .domain import ExtractionRule


class ExecutionError(Exception):
    """Base class for all errors produced while executing a request."""

    def __init__(self, message: str, request_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.request_name: Optional[str] = request_name


class ConfigurationError(ExecutionError):
    """A request or monitor definition is malformed (bad timeout, bad URL, invalid file)."""


class TransportError(ExecutionError):
    """The request could not be sent or no response arrived before the timeout."""


class UnexpectedStatusError(ExecutionError):
    """The response status code is not in the accepted set."""

    def __init__(
        self, status_code: int, accepted_codes: Iterable[int], request_name: Optional[str] = None
    ) -> None:
        self.status_code: int = status_code
        self.accepted_codes = frozenset(accepted_codes)
        super().__init__(
            f"unexpected status code {status_code}, expected one of {sorted(self.accepted_codes)}",
            request_name,
        )


class ExtractionError(ExecutionError):
    """An extraction rule could not locate its value in the response."""

    def __init__(
        self, message: str, rule: ExtractionRule, request_name: Optional[str] = None
    ) -> None:
        super().__init__(message, request_name)
        self.rule: ExtractionRule = rule
