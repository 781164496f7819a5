# Persistence layer
from .state_store import StateStore, serialize

__all__ = [
    "StateStore",
    "serialize",
]
