"""Operator configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .constants import DEFAULT_AGENT_NAMESPACE


def _get_float(env: Mapping[str, str], name: str, default: float, minimum: float = 0.0) -> float:
    raw = env.get(name, str(default))
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name, str(default))
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class OperatorConfig:
    """Runtime settings of the operator."""

    agent_namespace: str = DEFAULT_AGENT_NAMESPACE
    metrics_port: int = 8080
    log_level: str = "INFO"
    reconcile_timeout: float = 60.0
    drift_check_interval: float = 300.0
    conflict_retry_steps: int = 4
    conflict_retry_initial_delay: float = 0.01
    conflict_retry_factor: float = 5.0
    k8s_rate_limit_per_second: float = 10.0
    k8s_request_timeout: float = 30.0
    max_workers: int = 4

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "OperatorConfig":
        """Build the configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ValueError: If a numeric variable is malformed or out of range
        """
        env = os.environ if env is None else env
        return cls(
            agent_namespace=env.get("OCM_AGENT_NAMESPACE", DEFAULT_AGENT_NAMESPACE),
            metrics_port=_get_int(env, "METRICS_PORT", 8080, minimum=1),
            log_level=env.get("LOG_LEVEL", "INFO"),
            reconcile_timeout=_get_float(env, "RECONCILE_TIMEOUT_SECONDS", 60.0, minimum=1.0),
            drift_check_interval=_get_float(env, "DRIFT_CHECK_INTERVAL_SECONDS", 300.0, minimum=1.0),
            conflict_retry_steps=_get_int(env, "CONFLICT_RETRY_STEPS", 4, minimum=1),
            conflict_retry_initial_delay=_get_float(env, "CONFLICT_RETRY_INITIAL_DELAY", 0.01),
            conflict_retry_factor=_get_float(env, "CONFLICT_RETRY_FACTOR", 5.0, minimum=1.0),
            k8s_rate_limit_per_second=_get_float(env, "K8S_RATE_LIMIT_PER_SECOND", 10.0, minimum=0.1),
            k8s_request_timeout=_get_float(env, "K8S_REQUEST_TIMEOUT_SECONDS", 30.0, minimum=1.0),
            max_workers=_get_int(env, "OPERATOR_MAX_WORKERS", 4, minimum=1),
        )
