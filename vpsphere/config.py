from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER = logging.getLogger("vpsphere")

_SUPPORTED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_BOUND_SLACK = 1e-12


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_float(raw: str | None, *, default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def _normalise_log_level(value: str | None) -> str:
    if value is None or value.strip() == "":
        return _DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    if level not in _SUPPORTED_LOG_LEVELS:
        raise ValueError(
            f"Unsupported log level '{level}'. Expected one of {_SUPPORTED_LOG_LEVELS}."
        )
    return level


def _parse_bound_slack(raw: str | None) -> float:
    slack = _parse_optional_float(raw, default=_DEFAULT_BOUND_SLACK)
    if not math.isfinite(slack) or slack < 0.0:
        raise ValueError(f"Bound slack must be a finite non-negative float, got {slack!r}.")
    return slack


@dataclass(frozen=True)
class RuntimeConfig:
    enable_numba: bool
    enable_diagnostics: bool
    log_level: str
    bound_slack: float

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        enable_numba = _bool_from_env(os.getenv("VPSPHERE_ENABLE_NUMBA"), default=False)
        enable_diagnostics = _bool_from_env(
            os.getenv("VPSPHERE_ENABLE_DIAGNOSTICS"), default=True
        )
        log_level = _normalise_log_level(os.getenv("VPSPHERE_LOG_LEVEL"))
        bound_slack = _parse_bound_slack(os.getenv("VPSPHERE_BOUND_SLACK"))
        return cls(
            enable_numba=enable_numba,
            enable_diagnostics=enable_diagnostics,
            log_level=log_level,
            bound_slack=bound_slack,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("vpsphere")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    if config.enable_numba:
        from vpsphere.core._metric_numba import NUMBA_METRIC_AVAILABLE

        if not NUMBA_METRIC_AVAILABLE:
            _LOGGER.warning(
                "VPSPHERE_ENABLE_NUMBA is set but numba is not installed; using numpy kernels."
            )
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "enable_numba": config.enable_numba,
        "enable_diagnostics": config.enable_diagnostics,
        "log_level": config.log_level,
        "bound_slack": config.bound_slack,
    }


__all__ = [
    "RuntimeConfig",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
