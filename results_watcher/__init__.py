"""
results-watcher archives CI/CD runs from a Kubernetes cluster into a durable
results service and garbage collects completed runs from the cluster.

The library is built around a level-triggered reconciler: given a
`namespace/name` key it fetches the run, upserts its archived Record, stamps
correlation annotations on the live object and, once the run is complete,
unowned and past its grace period, deletes it from the cluster.
"""

__all__ = [
    "annotation",
    "clock",
    "cluster",
    "config",
    "controller",
    "convert",
    "exceptions",
    "names",
    "reconciler",
    "resource",
    "storage",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
