"""Domain-specific exceptions for Retail Core analytics.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from RetailCoreError for easy catching.
"""

from __future__ import annotations

from typing import Any


class RetailCoreError(Exception):
    """Base exception for all Retail Core errors.

    Users can catch this exception to handle any Retail Core error.
    """

    pass


class ConfigError(RetailCoreError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided
    - Environment overrides cannot be parsed
    """

    pass


class DataQualityError(RetailCoreError):
    """Raised when input data does not meet the record contract.

    This exception is raised when:
    - Required columns are missing from an input DataFrame
    - A raw field cannot be interpreted
    """

    pass


class InvalidDateError(DataQualityError):
    """Raised when a transaction date or time cannot be parsed.

    Attributes:
        value: The raw value that failed to parse.
    """

    def __init__(self, value: Any, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"Invalid date/time value: {value!r}")


class EmptyGroupError(RetailCoreError):
    """Raised when a mean is requested over a group with zero records."""

    pass


class UndefinedTrendError(RetailCoreError):
    """Raised when a percentage change has a zero base-period value.

    The trend comparator handles this by excluding the partition.
    """

    def __init__(self, partition: Any = None) -> None:
        self.partition = partition
        super().__init__(f"Percentage change undefined for zero base value (partition={partition!r})")
