"""
Constants for the synthetic monitoring system.

This module defines default values for all configurable parameters
of the monitoring system. These constants are used as fallback values
when neither command-line arguments nor environment variables are provided.
"""

# Monitor definitions defaults
DEFAULT_MONITORS_FILE = "monitors.json"
DEFAULT_REQUEST_TIMEOUT = "10s"
DEFAULT_EXPECTED_RESPONSE_CODES = (200,)

# Worker configuration defaults
DEFAULT_WORKER_ID_PREFIX = "synthetic-monitor-"

# Scheduler configuration
MONITOR_TASK_NAME_PREFIX = "monitor-"

# HTTP configuration defaults
DEFAULT_CONNECTION_LIMIT = 100

# Logging configuration defaults
DEFAULT_LOGGING_TYPE = "prod"
DEFAULT_LOGGING_CONFIG_FILE = ""
