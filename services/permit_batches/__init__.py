"""Permit batch pipeline: geocode, batch into SQL, load into PostgreSQL."""
from .models import BatchEntry, ReconcileResult, RunSummary
from .registry import BatchRegistry
from .reconciler import BatchReconciler
from .loader import BatchLoader

__all__ = ['BatchEntry', 'ReconcileResult', 'RunSummary', 'BatchRegistry', 'BatchReconciler', 'BatchLoader']
