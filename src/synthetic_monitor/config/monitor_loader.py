"""
Loader for the monitor definitions file.

The file is a JSON document with a top-level 'monitors' list. It is validated
with pydantic models and converted into the immutable domain objects consumed
by the chain runner and the schedulers.
"""

import json
import logging
import re
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from synthetic_monitor.config.constants import DEFAULT_EXPECTED_RESPONSE_CODES, DEFAULT_REQUEST_TIMEOUT
from synthetic_monitor.domain import (
    ExtractionRule,
    ExtractionSource,
    HttpMethod,
    MonitorDefinition,
    RequestSpec,
)
from synthetic_monitor.durations import parse_duration
from synthetic_monitor.errors import ConfigurationError

# Module logger
logger = logging.getLogger(__name__)

MultiValue = Union[str, List[str]]


class ExtractionRuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(..., min_length=1, description="Name of the variable to create")
    source: ExtractionSource = Field(..., alias="from", description="header, json, regex or status")
    key: str = Field("", description="Header name, JSON path or regular expression")

    @model_validator(mode="after")
    def check_key(self) -> "ExtractionRuleModel":
        if self.source != ExtractionSource.STATUS and not self.key:
            raise ValueError(f"extraction rule '{self.name}' requires a key for source '{self.source.value}'")
        if self.source == ExtractionSource.REGEX:
            try:
                re.compile(self.key)
            except re.error as e:
                raise ValueError(f"extraction rule '{self.name}' has an invalid pattern: {e}") from e
        return self


class RequestSpecModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    method: HttpMethod = HttpMethod.GET
    url: str = Field(..., min_length=1, description="URL template, can contain {{variables}}")
    headers: Dict[str, MultiValue] = Field(default_factory=dict)
    body: str = ""
    query_params: Dict[str, MultiValue] = Field(default_factory=dict)
    expected_response_codes: List[int] = Field(default_factory=lambda: list(DEFAULT_EXPECTED_RESPONSE_CODES))
    # Kept verbatim; a malformed timeout fails the request when it runs.
    timeout: Optional[str] = None
    variables_from_response: List[ExtractionRuleModel] = Field(default_factory=list)

    @field_validator("method", mode="before")
    @classmethod
    def upper_method(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("expected_response_codes")
    @classmethod
    def check_codes(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("expected_response_codes must not be empty")
        for code in v:
            if not 100 <= code <= 599:
                raise ValueError(f"invalid HTTP status code: {code}")
        return v


class MonitorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    period: str
    variables: Dict[str, str] = Field(default_factory=dict)
    requests: List[RequestSpecModel] = Field(default_factory=list)
    cleanup: List[RequestSpecModel] = Field(default_factory=list)

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        if parse_duration(v).total_seconds() <= 0:
            raise ValueError("period must be a positive duration")
        return v


class MonitorsFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    monitors: List[MonitorModel]

    @model_validator(mode="after")
    def check_unique_names(self) -> "MonitorsFileModel":
        seen = set()
        for monitor in self.monitors:
            if monitor.name in seen:
                raise ValueError(f"duplicate monitor name: {monitor.name}")
            seen.add(monitor.name)
        return self


def _as_list(values: Dict[str, MultiValue]) -> Dict[str, List[str]]:
    return {key: [value] if isinstance(value, str) else list(value) for key, value in values.items()}


def _map_request(model: RequestSpecModel, default_timeout: str) -> RequestSpec:
    return RequestSpec(
        name=model.name,
        method=model.method,
        url=model.url,
        headers=_as_list(model.headers),
        body=model.body,
        query_params=_as_list(model.query_params),
        expected_response_codes=frozenset(model.expected_response_codes),
        timeout=model.timeout if model.timeout is not None else default_timeout,
        variables_from_response=tuple(
            ExtractionRule(name=rule.name, source=rule.source, key=rule.key)
            for rule in model.variables_from_response
        ),
    )


def _map_monitor(model: MonitorModel, default_timeout: str) -> MonitorDefinition:
    return MonitorDefinition(
        name=model.name,
        period=parse_duration(model.period),
        variables=dict(model.variables),
        requests=tuple(_map_request(request, default_timeout) for request in model.requests),
        cleanup=tuple(_map_request(request, default_timeout) for request in model.cleanup),
    )


def parse_monitors(
    document: Union[str, bytes, dict], default_timeout: str = DEFAULT_REQUEST_TIMEOUT
) -> Tuple[MonitorDefinition, ...]:
    """
    Validates a monitor definitions document and converts it to domain objects.

    Args:
        document: The JSON text, or the already decoded document.
        default_timeout: Timeout used by requests that do not declare one.

    Returns:
        Tuple[MonitorDefinition, ...]: The monitors, in file order.

    Raises:
        ConfigurationError: If the document is not valid JSON or does not
            describe valid monitors.
    """
    try:
        if isinstance(document, dict):
            model = MonitorsFileModel.model_validate(document)
        else:
            model = MonitorsFileModel.model_validate_json(document)
    except ValidationError as e:
        raise ConfigurationError(f"invalid monitor definitions: {e}") from e

    return tuple(_map_monitor(monitor, default_timeout) for monitor in model.monitors)


def load_monitors(path: str, default_timeout: str = DEFAULT_REQUEST_TIMEOUT) -> Tuple[MonitorDefinition, ...]:
    """
    Reads and validates the monitor definitions file.

    Args:
        path: Path to the JSON file.
        default_timeout: Timeout used by requests that do not declare one.

    Returns:
        Tuple[MonitorDefinition, ...]: The monitors, in file order.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"cannot read monitor definitions file {path}: {e}") from e

    monitors = parse_monitors(content, default_timeout)
    logger.info(f"Loaded {len(monitors)} monitor(s) from {path}")
    return monitors
