"""OCM Agent Operator: deploys and maintains the OCM Agent on a cluster."""

__version__ = "0.1.0"
