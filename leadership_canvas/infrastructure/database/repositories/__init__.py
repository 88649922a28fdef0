"""
Repositories, one per storage capability.

- OwnerScopedRepository: rows the caller owns, always filtered by owner
- RoleLookupRepository: the role column, nothing else
- PrivilegedRepository: cross-user access, gated by a PrivilegedGrant
- CanvasReadRepository: read-only queries for summary screens
"""

from .owned import OwnerScopedRepository
from .privileged import PrivilegedRepository
from .reads import CanvasReadRepository
from .roles import RoleLookupRepository

__all__ = [
    "CanvasReadRepository",
    "OwnerScopedRepository",
    "PrivilegedRepository",
    "RoleLookupRepository",
]
