"""
Configuration management for coalescing groups.

Handles environment variables and default values following the precedence
rules below:

1. Explicit parameter (highest precedence)
2. Environment variable
3. Default value (lowest precedence)
"""

import math
import os

from .constants import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_VALIDITY_SECONDS,
    ERROR_ENV_NEGATIVE,
    ERROR_ENV_NOT_NUMBER,
    ERROR_ENV_WORKERS,
    MAX_THREAD_WORKERS,
)
from .exceptions import ConfigurationError
from .validators import Validity


class GroupConfig:
    """Configuration resolver for groups, the executor and the decorator."""

    # Environment variable names
    ENV_DEFAULT_VALIDITY = "SINGLECACHE_DEFAULT_VALIDITY_SECONDS"
    ENV_MAX_WORKERS = "SINGLECACHE_MAX_WORKERS"
    ENV_KEY_PREFIX = "SINGLECACHE_KEY_PREFIX"

    # Default values
    DEFAULT_VALIDITY_SECONDS = DEFAULT_VALIDITY_SECONDS
    DEFAULT_KEY_PREFIX = DEFAULT_KEY_PREFIX

    @classmethod
    def resolve_default_validity(cls, explicit_value: Validity = None) -> Validity:
        """Resolve the validity used when a call passes ``validity=None``.

        Args:
            explicit_value: Explicit default validity from the group constructor

        Returns:
            Resolved validity in seconds (or the explicit timedelta)

        Raises:
            ConfigurationError: If the environment value is not a non-negative number
        """
        if explicit_value is not None:
            return explicit_value

        env_value = os.getenv(cls.ENV_DEFAULT_VALIDITY)
        if env_value:
            try:
                seconds = float(env_value)
            except ValueError:
                raise ConfigurationError(
                    ERROR_ENV_NOT_NUMBER.format(name=cls.ENV_DEFAULT_VALIDITY, value=env_value)
                ) from None
            if not math.isfinite(seconds):
                raise ConfigurationError(
                    ERROR_ENV_NOT_NUMBER.format(name=cls.ENV_DEFAULT_VALIDITY, value=env_value)
                )
            if seconds < 0:
                raise ConfigurationError(ERROR_ENV_NEGATIVE.format(name=cls.ENV_DEFAULT_VALIDITY, value=env_value))
            return seconds

        return cls.DEFAULT_VALIDITY_SECONDS

    @classmethod
    def resolve_max_workers(cls, explicit_value: int | None = None) -> int:
        """Resolve thread pool size.

        Falls back to Python's default pattern:
        min(MAX_THREAD_WORKERS, (os.cpu_count() or 1) + 4).

        Raises:
            ConfigurationError: If the environment value is not an integer >= 1
        """
        if explicit_value is not None:
            return explicit_value

        env_value = os.getenv(cls.ENV_MAX_WORKERS)
        if env_value:
            try:
                workers = int(env_value)
            except ValueError:
                workers = 0
            if workers < 1:
                raise ConfigurationError(ERROR_ENV_WORKERS.format(name=cls.ENV_MAX_WORKERS, value=env_value))
            return workers

        return min(MAX_THREAD_WORKERS, (os.cpu_count() or 1) + 4)

    @classmethod
    def resolve_key_prefix(cls, explicit_value: str | None = None) -> str:
        """Resolve decorator key prefix."""
        if explicit_value is not None:
            return explicit_value

        env_value = os.getenv(cls.ENV_KEY_PREFIX)
        if env_value:
            return env_value

        return cls.DEFAULT_KEY_PREFIX
