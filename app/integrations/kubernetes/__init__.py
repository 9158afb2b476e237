"""Kubernetes integration module."""

from .logs import PodLogError, PodLogReader

__all__ = ["PodLogError", "PodLogReader"]
