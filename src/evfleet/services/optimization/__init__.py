"""Optimization result reconciliation."""

from .models import OptimizationCandidate, ReconcilerState
from .reconciler import OptimizationReconciler

__all__ = ["OptimizationCandidate", "OptimizationReconciler", "ReconcilerState"]
