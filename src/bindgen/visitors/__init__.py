"""Visitor implementations for pipeline plan traversal."""

from .base import PlanVisitor
from .parameter_collector import ParameterCollector, collect_parameters

__all__ = ["PlanVisitor", "ParameterCollector", "collect_parameters"]
