"""Operate application instances on a Kubernetes cluster."""

__version__ = "1.0.0"
