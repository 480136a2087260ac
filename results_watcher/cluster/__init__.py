"""
The cluster module holds clients for the live objects being archived.

- `ResourceClient` is the abstract contract consumed by the reconciler.
- `InMemoryResourceClient` is a fake dynamic client used by tests.
- `KubectlResourceClient` talks to a real cluster through `kubectl`.
"""

from .client import ResourceClient
from .in_memory import InMemoryResourceClient
from .kubectl import KubectlResourceClient

__all__ = [
    "ResourceClient",
    "InMemoryResourceClient",
    "KubectlResourceClient",
]
