"""Reconciliation engine and OcmAgent lifecycle controller."""

from .context import OperatorContext, ReconcileContext
from .controller import OcmAgentController
from .engine import ResourceReconciler

__all__ = [
    "OperatorContext",
    "ReconcileContext",
    "OcmAgentController",
    "ResourceReconciler",
]
