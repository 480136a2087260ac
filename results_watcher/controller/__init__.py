"""Controller package.

This package contains the work queue and worker pool that deliver reconcile
keys to a `Reconciler`.
"""

from .controller import Controller, object_key
from .queue import RateLimiter, WorkQueue

__all__ = ["Controller", "RateLimiter", "WorkQueue", "object_key"]
