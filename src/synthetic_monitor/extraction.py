"""
Extraction of variables from HTTP responses.

Rules are applied to a ResponseSnapshot captured by the executor, which holds
everything read from the wire: status code, headers and body text. Header
lookups are case-insensitive, JSON paths use dot notation for keys and bracket
notation for list indices (e.g. 'data.items[0].id').
"""

import json
import logging
import re
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

from multidict import CIMultiDictProxy

from .domain import ExtractionRule, ExtractionSource, Variable, VariableOrigin
from .errors import ExtractionError

# Module logger
logger = logging.getLogger(__name__)

_PATH_COMPONENT = re.compile(r"\[(\d+)\]|\.?([^.\[\]]+)")

# Sentinel distinguishing a missing key from a JSON null
_MISSING = object()


class ResponseSnapshot(NamedTuple):
    """
    The parts of an HTTP response available to extraction rules.

    Attributes:
        status: The HTTP status code.
        headers: The response headers, looked up case-insensitively.
        text: The decoded response body.
    """

    status: int
    headers: CIMultiDictProxy
    text: str


def get_json_path(document: Any, path: str) -> Any:
    """
    Retrieves a value from a decoded JSON document using dot and bracket notation.

    Args:
        document: The decoded JSON document.
        path: A path such as 'token', 'data.items[0].id' or '[2].name'.

    Returns:
        The value found at the path, or the _MISSING sentinel if any component
        does not exist.
    """
    if not path:
        return _MISSING

    current = document
    position = 0
    while position < len(path):
        match = _PATH_COMPONENT.match(path, position)
        if match is None:
            return _MISSING
        position = match.end()

        index, key = match.group(1), match.group(2)
        if index is not None:
            if not isinstance(current, list) or int(index) >= len(current):
                return _MISSING
            current = current[int(index)]
        else:
            if not isinstance(current, dict) or key not in current:
                return _MISSING
            current = current[key]

    return current


def _to_variable_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


class _BodyCache:
    """Decodes the JSON body at most once for all the rules of a response."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._decoded: Any = _MISSING
        self._error: Optional[ValueError] = None

    def json(self) -> Any:
        if self._decoded is _MISSING and self._error is None:
            try:
                self._decoded = json.loads(self._text)
            except ValueError as e:
                self._error = e
        if self._error is not None:
            raise self._error
        return self._decoded


def _extract_one(
    rule: ExtractionRule, response: ResponseSnapshot, body: _BodyCache, request_name: Optional[str]
) -> str:
    if rule.source == ExtractionSource.STATUS:
        return str(response.status)

    if rule.source == ExtractionSource.HEADER:
        value = response.headers.get(rule.key)
        if value is None:
            raise ExtractionError(
                f"header '{rule.key}' not found in response", rule, request_name
            )
        return value

    if rule.source == ExtractionSource.JSON:
        try:
            document = body.json()
        except ValueError as e:
            raise ExtractionError(
                f"response body is not valid JSON: {e}", rule, request_name
            ) from e
        value = get_json_path(document, rule.key)
        if value is _MISSING:
            raise ExtractionError(
                f"path '{rule.key}' not found in response body", rule, request_name
            )
        return _to_variable_value(value)

    if rule.source == ExtractionSource.REGEX:
        try:
            match = re.search(rule.key, response.text)
        except re.error as e:
            raise ExtractionError(
                f"invalid regular expression '{rule.key}': {e}", rule, request_name
            ) from e
        if match is None:
            raise ExtractionError(
                f"pattern '{rule.key}' did not match the response body", rule, request_name
            )
        if not match.re.groups:
            return match.group(0)
        value = match.group(1)
        if value is None:
            raise ExtractionError(
                f"group 1 of pattern '{rule.key}' did not participate in the match", rule, request_name
            )
        return value

    raise ExtractionError(f"unsupported extraction source '{rule.source}'", rule, request_name)


def extract_variables(
    rules: Iterable[ExtractionRule], response: ResponseSnapshot, request_name: Optional[str] = None
) -> Tuple[Variable, ...]:
    """
    Applies extraction rules in order and returns the resulting variables.

    Args:
        rules: The extraction rules of the request.
        response: The captured response.
        request_name: Name of the request, attached to any error raised.

    Returns:
        Tuple[Variable, ...]: One variable per rule, in rule order.

    Raises:
        ExtractionError: If any rule cannot locate its value. No variables
            are returned in that case, even for rules that succeeded.
    """
    body = _BodyCache(response.text)
    extracted: List[Variable] = []
    for rule in rules:
        value = _extract_one(rule, response, body, request_name)
        logger.debug(f"Extracted variable '{rule.name}' from {rule.source.value}")
        extracted.append(Variable(rule.name, VariableOrigin.EXTRACTED_FROM_RESPONSE, value))
    return tuple(extracted)
