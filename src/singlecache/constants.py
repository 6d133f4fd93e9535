"""
Constants for the coalescing group.

Defines default values and error message templates shared by the group,
the configuration layer and the validators.
"""

import sys

# Validity configuration
DEFAULT_VALIDITY_SECONDS = 0  # 0 = call stays joinable until it completes
NEVER_EXPIRES = sys.maxsize  # Expiry sentinel for unbounded validity
MILLISECONDS_PER_SECOND = 1000

# Thread pool configuration
MAX_THREAD_WORKERS = 32  # Maximum threads in executor pool
THREAD_POOL_PREFIX = "singlecache"  # Thread name prefix

# Key defaults
DEFAULT_KEY_PREFIX = "singlecache"

# Error message templates
ERROR_KEY_TYPE_INVALID = "key must be str, got {type_name}"
ERROR_VALIDITY_TYPE_INVALID = "validity must be int, float, timedelta or None, got {type_name}"
ERROR_VALIDITY_NEGATIVE = "validity must be >= 0 or None, got {value}"
ERROR_VALIDITY_NOT_FINITE = "validity must be finite, got {value}"
ERROR_OPERATION_NOT_CALLABLE = "operation must be callable, got {type_name}"
ERROR_ENV_NOT_NUMBER = "{name} must be a finite number, got {value!r}"
ERROR_ENV_NEGATIVE = "{name} must be >= 0, got {value!r}"
ERROR_ENV_WORKERS = "{name} must be an integer >= 1, got {value!r}"
ERROR_KEY_PREFIX_EMPTY = "key_prefix cannot be empty or whitespace-only"
