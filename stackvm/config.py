"""
Runtime configuration defaults.

Each value can be overridden from the environment; the CLI uses these as its
argparse defaults.
"""

import os

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_FORMATS = ["console", "json"]

DEFAULT_LOG_LEVEL = os.environ.get("STACKVM_LOG_LEVEL", "WARNING").upper()
DEFAULT_LOG_FORMAT = os.environ.get("STACKVM_LOG_FORMAT", "console").lower()
DEFAULT_TRACE = os.environ.get("STACKVM_TRACE", "false").lower() in ("1", "true", "yes")

# Source syntax
COMMENT_PREFIX = "--"
SOURCE_ENCODING = "utf-8"

# Process exit statuses
EXIT_HALTED = 0
EXIT_FAULTED = 1
EXIT_BAD_INPUT = 2
EXIT_INTERRUPTED = 130  # Standard exit code for Ctrl+C
