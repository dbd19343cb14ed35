"""
Domain models for the synthetic monitoring system.

This module defines the core data structures used throughout the application,
including variables and their store, request specifications, extraction rules,
monitor definitions and the outcome of a single request. These models serve as
the foundation for the request-chaining data flow.
"""

from datetime import timedelta
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Tuple


class HttpMethod(str, Enum):
    """
    Defines supported HTTP methods as a type-safe enumeration.

    Inheriting from 'str' allows enum members to behave like strings,
    making them compatible with libraries expecting string values.
    """

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"


class VariableOrigin(str, Enum):
    """Where the value of a variable came from."""

    PROVIDED = "provided"
    EXTRACTED_FROM_RESPONSE = "extracted-from-response"


class ExtractionSource(str, Enum):
    """The part of a response an extraction rule reads from."""

    HEADER = "header"
    JSON = "json"
    REGEX = "regex"
    STATUS = "status"


class Phase(str, Enum):
    """The chain a request belongs to."""

    MONITORING = "monitoring"
    CLEANUP = "cleanup"


class Variable(NamedTuple):
    """
    A named string value usable in templates.

    Attributes:
        name: The placeholder name, referenced as {{name}} in templates.
        origin: Whether the value was configured or extracted from a response.
        value: The string substituted for the placeholder.
    """

    name: str
    origin: VariableOrigin
    value: str


class VariableStore:
    """
    An ordered, append-only sequence of variables.

    The store is never mutated in place: extend() returns a new store that
    shares the existing entries. Names may repeat; the most recently added
    variable with a given name wins when resolving.
    """

    __slots__ = ("_variables",)

    def __init__(self, variables: Iterable[Variable] = ()) -> None:
        self._variables: Tuple[Variable, ...] = tuple(variables)

    def extend(self, variables: Iterable[Variable]) -> "VariableStore":
        """Returns a new store with the given variables appended in order."""
        added = tuple(variables)
        if not added:
            return self
        return VariableStore(self._variables + added)

    def resolve(self) -> Dict[str, str]:
        """
        Collapses the store into a name to value mapping.

        Later entries overwrite earlier ones, so the last variable with a
        given name wins.
        """
        return {variable.name: variable.value for variable in self._variables}

    def get(self, name: str) -> Optional[str]:
        for variable in reversed(self._variables):
            if variable.name == name:
                return variable.value
        return None

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"VariableStore({list(self._variables)!r})"


class ExtractionRule(NamedTuple):
    """
    Describes how to derive a variable from an HTTP response.

    Attributes:
        name: Name of the variable to create.
        source: Which part of the response to read.
        key: Header name, JSON path or regular expression depending on source.
            Ignored for the status source.
    """

    name: str
    source: ExtractionSource
    key: str = ""


class RequestSpec(NamedTuple):
    """
    Declarative description of one HTTP call in a chain.

    All string fields except name and timeout are templates that may contain
    {{variable}} placeholders.

    Attributes:
        name: Human readable name used in logs.
        method: The HTTP method to use for the request.
        url: URL template.
        headers: Header templates, each name mapping to an ordered list of values.
        body: Body template; empty for no body.
        query_params: Query parameter templates, merged into the URL's query string.
        expected_response_codes: Set of accepted status codes.
        timeout: Duration string such as "500ms" or "10s", parsed at execution time.
        variables_from_response: Extraction rules, applied in order.
    """

    name: str
    method: HttpMethod
    url: str
    headers: Dict[str, List[str]]
    body: str
    query_params: Dict[str, List[str]]
    expected_response_codes: FrozenSet[int]
    timeout: str
    variables_from_response: Tuple[ExtractionRule, ...]


class MonitorDefinition(NamedTuple):
    """
    A single monitor with its complete configuration.

    Attributes:
        name: Unique name of the monitor.
        period: How frequently the monitor runs.
        variables: User-provided variables, in declared order.
        requests: The monitoring chain.
        cleanup: The cleanup chain, run after the monitoring chain on every tick.
    """

    name: str
    period: timedelta
    variables: Dict[str, str]
    requests: Tuple[RequestSpec, ...]
    cleanup: Tuple[RequestSpec, ...]


class RequestOutcome(NamedTuple):
    """
    A data structure holding the result of a single request in a chain.

    Attributes:
        spec: The RequestSpec that was executed.
        phase: The chain the request belongs to.
        error: The ExecutionError that occurred, or None if successful.
        start_time: The start time from time.monotonic() in seconds.
        end_time: The end time from time.monotonic() in seconds.
        status_code: The HTTP status code received, or None if no response arrived.
        extracted: Variables extracted from the response; empty on error.
    """

    spec: RequestSpec
    phase: Phase
    error: Optional[Exception]
    start_time: float
    end_time: float
    status_code: Optional[int]
    extracted: Tuple[Variable, ...]

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class ChainResult(NamedTuple):
    """
    The result of running one chain.

    Attributes:
        store: The variable store after the last executed request.
        first_error: The first error encountered, or None.
        outcomes: One outcome per executed request, in execution order.
    """

    store: VariableStore
    first_error: Optional[Exception]
    outcomes: Tuple[RequestOutcome, ...]
