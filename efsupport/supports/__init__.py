"""Action supports and their reachability queries."""

from efsupport.supports.cached import CachedSupport, ReachableNodeCache
from efsupport.supports.support import Support

__all__ = [
    "CachedSupport",
    "ReachableNodeCache",
    "Support",
]
