"""
Repository layer for Stockbook.

Repositories encapsulate read queries; counter mutation lives in
stockbook.services.counter_store.
"""

from stockbook.repositories.counter_repository import list_counters

__all__ = [
    "list_counters",
]
