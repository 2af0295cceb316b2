"""
Utility modules for shared functionality.
"""
from .optimistic import OptimisticEntry, OptimisticList

__all__ = [
    "OptimisticEntry",
    "OptimisticList",
]
