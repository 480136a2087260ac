"""Reconciler package.

This package contains the decision procedure that archives a run, annotates
it and garbage collects it once complete.
"""

from .reconciler import (
    CleanupAction,
    CleanupDecision,
    EnqueueAfter,
    Reconciler,
    decide_cleanup,
)

__all__ = [
    "Reconciler",
    "CleanupAction",
    "CleanupDecision",
    "EnqueueAfter",
    "decide_cleanup",
]
