"""
Request executor implementation using the aiohttp library.

This module provides an implementation of the RequestExecutor interface that
renders a RequestSpec against the current variables, sends it through a shared
aiohttp ClientSession, validates the status code and extracts new variables
from the response.
"""

import asyncio
import logging
import time
from typing import Dict, List, NamedTuple, Optional, Tuple

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from synthetic_monitor.contracts import RequestExecutor
from synthetic_monitor.domain import (
    Phase,
    RequestOutcome,
    RequestSpec,
    Variable,
    VariableStore,
)
from synthetic_monitor.durations import parse_duration
from synthetic_monitor.errors import (
    ConfigurationError,
    ExecutionError,
    TransportError,
    UnexpectedStatusError,
)
from synthetic_monitor.extraction import ResponseSnapshot, extract_variables
from synthetic_monitor.templating import Renderer

# Module logger
logger = logging.getLogger(__name__)


class PreparedRequest(NamedTuple):
    """A fully rendered request, ready to be sent."""

    method: str
    url: URL
    headers: CIMultiDict
    body: str
    timeout: float


def merge_query(url: URL, query_params: Dict[str, List[str]]) -> URL:
    """
    Merges rendered query parameters into the query string of url.

    Keys present in query_params replace every value of the same key in the
    URL's own query; other keys of the URL's query are kept in place.

    Args:
        url: The rendered URL, possibly carrying its own query string.
        query_params: Rendered parameters, each name mapping to a list of values.

    Returns:
        URL: The URL with the merged query string.
    """
    if not query_params:
        return url

    pairs: List[Tuple[str, str]] = [
        (key, value) for key, value in url.query.items() if key not in query_params
    ]
    for key, values in query_params.items():
        pairs.extend((key, value) for value in values)
    return url.with_query(pairs)


def prepare_request(spec: RequestSpec, store: VariableStore) -> PreparedRequest:
    """
    Renders a RequestSpec into a PreparedRequest.

    No network I/O happens here, so every error raised by this function is a
    configuration problem of the request.

    Args:
        spec: The request to render.
        store: The variables available to the templates.

    Returns:
        PreparedRequest: The rendered request.

    Raises:
        ConfigurationError: If the timeout is not a valid duration or the
            rendered URL is not a valid absolute URL.
    """
    try:
        timeout = parse_duration(spec.timeout).total_seconds()
    except ValueError as e:
        raise ConfigurationError(f"invalid timeout {spec.timeout!r}: {e}", spec.name) from e
    if timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {spec.timeout!r}", spec.name)

    renderer = Renderer(store)

    rendered_url = renderer.render(spec.url)
    try:
        url = URL(rendered_url)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid url {rendered_url!r}: {e}", spec.name) from e
    if not url.is_absolute() or url.scheme not in ("http", "https"):
        raise ConfigurationError(f"url must be an absolute http(s) url: {rendered_url!r}", spec.name)

    url = merge_query(url, renderer.render_multimap(spec.query_params))

    headers: CIMultiDict = CIMultiDict()
    for key, values in renderer.render_multimap(spec.headers).items():
        for value in values:
            headers.add(key, value)

    return PreparedRequest(
        method=spec.method.value,
        url=url,
        headers=headers,
        body=renderer.render(spec.body),
        timeout=timeout,
    )


class AiohttpRequestExecutor(RequestExecutor):
    """
    A concrete implementation of RequestExecutor using the aiohttp library.

    This class handles the entire lifecycle of a single request: rendering,
    sending with a per-request deadline, status validation and extraction.
    It uses a shared aiohttp ClientSession provided by the caller.
    """

    def __init__(self, session: aiohttp.ClientSession) -> None:
        """
        Initializes the executor with a shared aiohttp ClientSession.

        Args:
            session: An active aiohttp.ClientSession to be used for requests.
        """
        self._session: aiohttp.ClientSession = session

    async def _send(self, request: PreparedRequest, spec: RequestSpec) -> ResponseSnapshot:
        """
        Sends the request and reads the complete response within the timeout.

        Raises:
            TransportError: On connection failures, client errors, rejected
                header values or timeout.
        """
        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body.encode() if request.body else None,
                timeout=aiohttp.ClientTimeout(total=request.timeout),
            ) as response:
                text: str = await response.text(errors="replace")
                return ResponseSnapshot(status=response.status, headers=response.headers, text=text)
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"request timed out after {request.timeout:.3f}s", spec.name
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"request failed: {e}", spec.name) from e
        except ValueError as e:
            # aiohttp rejects header values carrying control characters
            raise TransportError(f"request could not be sent: {e}", spec.name) from e

    async def execute(self, spec: RequestSpec, store: VariableStore, phase: Phase) -> RequestOutcome:
        """
        Performs the request described by spec with the variables in store.

        The status code is checked against the accepted set before any
        extraction rule runs. If any step fails the error is captured in the
        returned outcome and no variables are extracted.

        Args:
            spec: The request to perform.
            store: The variables available to the request's templates.
            phase: The chain the request belongs to.

        Returns:
            RequestOutcome: The outcome of the request.
        """
        error: Optional[ExecutionError] = None
        status_code: Optional[int] = None
        extracted: Tuple[Variable, ...] = ()
        start_time: float = time.monotonic()

        try:
            request = prepare_request(spec, store)
            logger.debug(f"Sending {request.method} {request.url} for request '{spec.name}'")

            response = await self._send(request, spec)
            status_code = response.status

            if status_code not in spec.expected_response_codes:
                raise UnexpectedStatusError(status_code, spec.expected_response_codes, spec.name)

            extracted = extract_variables(spec.variables_from_response, response, spec.name)

        except ExecutionError as e:
            error = e
            extracted = ()

        end_time: float = time.monotonic()
        if error is None:
            logger.debug(
                f"Request '{spec.name}' completed in {(end_time - start_time):.3f}s with status {status_code}"
            )

        return RequestOutcome(
            spec=spec,
            phase=phase,
            error=error,
            start_time=start_time,
            end_time=end_time,
            status_code=status_code,
            extracted=extracted,
        )
