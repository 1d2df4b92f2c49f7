"""
Runtime settings (``debt_config.settings``).

Responsibility
--------------
Reads the kernel's runtime knobs from ``DEBT_KERNEL_*`` environment
variables into one frozen ``KernelSettings`` value, validating every value
at load time.

Architecture position
---------------------
**Config layer** -- read once at process start by whoever wires the
scheduler and services.  No kernel, engine or service module reads the
environment itself.

Failure modes
-------------
* Unparseable or out-of-range value  -> ``ConfigurationError`` naming the
  variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping

from debt_kernel.domain.authorization import (
    DEFAULT_HIGH_PRIORITY_THRESHOLD,
    DEFAULT_LOW_PRIORITY_THRESHOLD,
)
from debt_kernel.exceptions import ConfigurationError
from debt_kernel.services.supervisor_assigner import AssignmentStrategy

ENV_PREFIX = "DEBT_KERNEL_"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class KernelSettings:
    database_url: str = "sqlite:///debt_kernel.db"
    log_level: str = "INFO"
    daily_run_hour: int = 2
    daily_run_minute: int = 0
    high_priority_threshold: Decimal = DEFAULT_HIGH_PRIORITY_THRESHOLD
    low_priority_threshold: Decimal = DEFAULT_LOW_PRIORITY_THRESHOLD
    authorization_timeout_hours: int = 72
    supervisor_strategy: AssignmentStrategy = AssignmentStrategy.ROUND_ROBIN

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError("LOG_LEVEL", f"unknown level {self.log_level!r}")
        if not 0 <= self.daily_run_hour <= 23:
            raise ConfigurationError("DAILY_RUN_HOUR", "must be between 0 and 23")
        if not 0 <= self.daily_run_minute <= 59:
            raise ConfigurationError("DAILY_RUN_MINUTE", "must be between 0 and 59")
        if self.low_priority_threshold < 0:
            raise ConfigurationError("LOW_PRIORITY_THRESHOLD", "must not be negative")
        if self.high_priority_threshold < self.low_priority_threshold:
            raise ConfigurationError(
                "HIGH_PRIORITY_THRESHOLD", "must not be below LOW_PRIORITY_THRESHOLD",
            )
        if self.authorization_timeout_hours < 1:
            raise ConfigurationError("AUTHORIZATION_TIMEOUT_HOURS", "must be at least 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KernelSettings:
        """Build settings from ``environ`` (default ``os.environ``); unset keys keep defaults."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        def raw(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        if (url := raw("DATABASE_URL")) is not None:
            values["database_url"] = url
        if (level := raw("LOG_LEVEL")) is not None:
            values["log_level"] = level.upper()
        for name, attr in (
            ("DAILY_RUN_HOUR", "daily_run_hour"),
            ("DAILY_RUN_MINUTE", "daily_run_minute"),
            ("AUTHORIZATION_TIMEOUT_HOURS", "authorization_timeout_hours"),
        ):
            if (value := raw(name)) is not None:
                values[attr] = _parse_int(name, value)
        for name, attr in (
            ("HIGH_PRIORITY_THRESHOLD", "high_priority_threshold"),
            ("LOW_PRIORITY_THRESHOLD", "low_priority_threshold"),
        ):
            if (value := raw(name)) is not None:
                values[attr] = _parse_decimal(name, value)
        if (strategy := raw("SUPERVISOR_STRATEGY")) is not None:
            try:
                values["supervisor_strategy"] = AssignmentStrategy(strategy.lower())
            except ValueError:
                raise ConfigurationError(
                    "SUPERVISOR_STRATEGY", f"unknown strategy {strategy!r}",
                ) from None

        return cls(**values)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(name, f"not an integer: {value!r}") from None


def _parse_decimal(name: str, value: str) -> Decimal:
    try:
        result = Decimal(value)
    except InvalidOperation:
        raise ConfigurationError(name, f"not a decimal: {value!r}") from None
    if not result.is_finite():
        raise ConfigurationError(name, f"not a finite decimal: {value!r}")
    return result
