"""
Configuration context for the synthetic monitoring system.

This module defines a data structure that holds all configuration parameters
for the monitoring system. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the monitoring system.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        monitors_file: Path to the JSON file holding the monitor definitions.
        worker_id: Unique identifier for this worker instance.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        default_timeout: Timeout applied to requests that do not declare one, e.g. "10s".
        connection_limit: Maximum number of simultaneous connections of the HTTP session.
    """

    monitors_file: str
    worker_id: str
    logging_type: str
    logging_config_file: str
    default_timeout: str
    connection_limit: int
