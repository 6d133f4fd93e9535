"""
Parameter validation utilities.

Checks the arguments of every group entry point before the registry is
touched, so a misuse never leaves a half-registered call behind.
"""

import math
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from .constants import (
    ERROR_KEY_PREFIX_EMPTY,
    ERROR_KEY_TYPE_INVALID,
    ERROR_OPERATION_NOT_CALLABLE,
    ERROR_VALIDITY_NEGATIVE,
    ERROR_VALIDITY_NOT_FINITE,
    ERROR_VALIDITY_TYPE_INVALID,
)
from .exceptions import InvalidKeyError, InvalidOperationError, InvalidValidityError

Validity = int | float | timedelta | None


def validate_key(key: str) -> None:
    """Validate coalescing key.

    Any string is accepted, including the empty string.

    Args:
        key: Coalescing key to validate

    Raises:
        InvalidKeyError: If key is not a string
    """
    if not isinstance(key, str):
        raise InvalidKeyError(ERROR_KEY_TYPE_INVALID.format(type_name=type(key).__name__))


def validate_validity(validity: Validity) -> None:
    """Validate validity window.

    Validity must be a finite, non-negative number of seconds, a non-negative
    timedelta, or None (group default).

    Args:
        validity: Validity window to validate

    Raises:
        InvalidValidityError: If validity is invalid
    """
    if validity is None:
        return
    _validate_validity_type(validity)
    _validate_validity_range(validity)


def _validate_validity_type(validity: Validity) -> None:
    """Validate validity type."""
    # Check for bool first since bool is subclass of int in Python
    if isinstance(validity, bool) or not isinstance(validity, (int, float, timedelta)):
        raise InvalidValidityError(ERROR_VALIDITY_TYPE_INVALID.format(type_name=type(validity).__name__))


def _validate_validity_range(validity: int | float | timedelta) -> None:
    """Validate validity range."""
    seconds = validity.total_seconds() if isinstance(validity, timedelta) else validity
    if not math.isfinite(seconds):
        raise InvalidValidityError(ERROR_VALIDITY_NOT_FINITE.format(value=validity))
    if seconds < 0:
        raise InvalidValidityError(ERROR_VALIDITY_NEGATIVE.format(value=validity))


def validate_operation(operation: Callable[[], Any]) -> None:
    """Validate that the operation can be called.

    Raises:
        InvalidOperationError: If operation is not callable
    """
    if not callable(operation):
        raise InvalidOperationError(ERROR_OPERATION_NOT_CALLABLE.format(type_name=type(operation).__name__))


def validate_key_prefix(key_prefix: str) -> None:
    """Validate decorator key prefix.

    Raises:
        ValueError: If key prefix is empty or whitespace-only
    """
    if not isinstance(key_prefix, str) or not key_prefix.strip():
        raise ValueError(ERROR_KEY_PREFIX_EMPTY)
