"""
Configuration module for the synthetic monitoring system.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the monitoring system. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
from typing import Any, List, Optional
from uuid import uuid4

from synthetic_monitor.config.constants import (
    DEFAULT_CONNECTION_LIMIT,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_MONITORS_FILE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_WORKER_ID_PREFIX,
)
from synthetic_monitor.config.monitoring_context import MonitoringContext


def _env(name: str, default: Any) -> Any:
    value = os.getenv(name)
    return default if value is None else value


def get_context(argv: Optional[List[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    This function creates an argument parser with options for all configurable aspects
    of the monitoring system. For each option, it first checks for a command-line argument,
    then falls back to an environment variable, and finally uses a default value.

    Args:
        argv: Arguments to parse instead of sys.argv[1:].

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.
    """
    parser = argparse.ArgumentParser(
        description="Runs chains of HTTP requests periodically to monitor external endpoints."
    )

    parser.add_argument(
        "-mf",
        "--monitors-file",
        type=str,
        default=_env("SYNTHETIC_MONITOR_MONITORS_FILE", DEFAULT_MONITORS_FILE),
        help="Path to the JSON file containing the monitor definitions.\n"
        "If not provided, the value is read from the SYNTHETIC_MONITOR_MONITORS_FILE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_MONITORS_FILE} is used.",
    )

    parser.add_argument(
        "-wid",
        "--worker-id",
        type=str,
        default=_env("SYNTHETIC_MONITOR_WORKER_ID", f"{DEFAULT_WORKER_ID_PREFIX}{uuid4()}"),
        help="Specifies the worker ID for the monitoring service.\n"
        "If not provided, the value is read from the SYNTHETIC_MONITOR_WORKER_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_WORKER_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=_env("SYNTHETIC_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=_env("SYNTHETIC_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    parser.add_argument(
        "-dt",
        "--default-timeout",
        type=str,
        default=_env("SYNTHETIC_MONITOR_DEFAULT_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        help="Timeout applied to requests that do not declare one, e.g. 500ms, 10s, 1m.\n"
        "If not provided, the value is read from the SYNTHETIC_MONITOR_DEFAULT_TIMEOUT environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_REQUEST_TIMEOUT} is used.",
    )

    parser.add_argument(
        "-cl",
        "--connection-limit",
        type=int,
        default=int(_env("SYNTHETIC_MONITOR_CONNECTION_LIMIT", DEFAULT_CONNECTION_LIMIT)),
        help="Specifies the maximum number of simultaneous HTTP connections.\n"
        "If not provided, the value is read from the SYNTHETIC_MONITOR_CONNECTION_LIMIT environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_CONNECTION_LIMIT} is used.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        monitors_file=args.monitors_file,
        worker_id=args.worker_id,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        default_timeout=args.default_timeout,
        connection_limit=args.connection_limit,
    )
