"""Configuration for Retail Core analytics.

This module provides a single, simple configuration class shared by the
temporal bucketer, the trend comparator and the business questions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from retail_core.exceptions import ConfigError

ENV_PREFIX = "RETAIL_CORE_"


@dataclass(frozen=True)
class AnalyticsConfig:
    """Settings used across the analytics operations.

    Attributes:
        date_format: strptime format of raw transaction dates (day/month/year).
        time_formats: strptime formats tried in order for raw transaction times.
        percent_places: Decimal places kept in percentage changes.
        trend_limit: Default number of partitions returned by trend queries.
        base_year: Default base period for year-over-year revenue comparison.
        compare_year: Default comparison period for year-over-year revenue.
    """

    date_format: str = "%d/%m/%Y"
    time_formats: tuple[str, ...] = ("%H:%M:%S", "%H:%M")
    percent_places: int = 2
    trend_limit: int = 5
    base_year: int = 2022
    compare_year: int = 2023

    def __post_init__(self) -> None:
        if self.percent_places < 0:
            raise ConfigError(f"percent_places must be >= 0, got {self.percent_places}")
        if self.trend_limit < 0:
            raise ConfigError(f"trend_limit must be >= 0, got {self.trend_limit}")
        if not self.time_formats:
            raise ConfigError("time_formats must not be empty")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> AnalyticsConfig:
        """Create a config with overrides from RETAIL_CORE_* environment variables.

        Recognised variables: RETAIL_CORE_DATE_FORMAT, RETAIL_CORE_TIME_FORMATS
        (comma separated), RETAIL_CORE_PERCENT_PLACES, RETAIL_CORE_TREND_LIMIT,
        RETAIL_CORE_BASE_YEAR, RETAIL_CORE_COMPARE_YEAR.

        Args:
            environ: Mapping to read instead of os.environ.

        Returns:
            AnalyticsConfig instance.

        Raises:
            ConfigError: If an integer setting cannot be parsed.

        Examples:
            >>> AnalyticsConfig.from_env({"RETAIL_CORE_TREND_LIMIT": "3"}).trend_limit
            3
        """
        env = os.environ if environ is None else environ
        config = cls()
        overrides: dict[str, object] = {}

        date_format = env.get(f"{ENV_PREFIX}DATE_FORMAT")
        if date_format:
            overrides["date_format"] = date_format

        time_formats = env.get(f"{ENV_PREFIX}TIME_FORMATS")
        if time_formats:
            overrides["time_formats"] = tuple(f.strip() for f in time_formats.split(",") if f.strip())

        for field_name in ("percent_places", "trend_limit", "base_year", "compare_year"):
            raw = env.get(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is None or raw == "":
                continue
            try:
                overrides[field_name] = int(raw)
            except ValueError as e:
                raise ConfigError(f"{ENV_PREFIX}{field_name.upper()} must be an integer, got {raw!r}") from e

        return replace(config, **overrides) if overrides else config


DEFAULT_CONFIG = AnalyticsConfig()
