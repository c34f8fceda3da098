"""Main entry point for the OCM Agent Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .reconciler import OcmAgentController, OperatorContext, ResourceReconciler
from .resources import default_registry
from .services.kubernetes import KubernetesObjectStore
from .tracing import initialize_tracing, shutdown_tracing
from .utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


def build_operator(config: OperatorConfig, store: Any = None) -> tuple[OperatorContext, OcmAgentController]:
    """Wire the store, reconciler and controller for a configuration.

    Args:
        config: Operator configuration
        store: Object store to use; a Kubernetes store is created when omitted

    Returns:
        The operator context and the controller
    """
    if store is None:
        store = KubernetesObjectStore(rate_limit_per_second=config.k8s_rate_limit_per_second)
    operator = OperatorContext(store=store, config=config)
    reconciler = ResourceReconciler(default_registry(), RetryPolicy.from_config(config))
    return operator, OcmAgentController(reconciler)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator."""
    config = OperatorConfig.from_env()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(config.log_level)
    initialize_tracing()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = config.k8s_request_timeout
    settings.execution.max_workers = config.max_workers

    # Metrics and health checks share one port
    memo.metrics_server = health.start_metrics_server(config.metrics_port)

    memo.operator, memo.controller = build_operator(config)
    health.mark_ready()
    logger.info("OCM Agent Operator configured for namespace %s", config.agent_namespace)


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop in-flight reconciles, the metrics server and the span exporter."""
    health.mark_ready(False)
    operator = getattr(memo, "operator", None)
    if operator is not None:
        operator.stop_event.set()
    server = getattr(memo, "metrics_server", None)
    if server is not None:
        server.shutdown()
    shutdown_tracing()


def main() -> None:
    """Run the operator, watching only the configured agent namespace."""
    config = OperatorConfig.from_env()
    kopf.run(
        clusterwide=False,
        namespaces=[config.agent_namespace],
        standalone=True,
    )


if __name__ == "__main__":
    main()
