"""Store implementations."""

from .base import LoadResult, Store, StoreError, UnknownOpportunityTypeError
from .json_store import JsonStore

__all__ = [
    "JsonStore",
    "LoadResult",
    "Store",
    "StoreError",
    "UnknownOpportunityTypeError",
]
