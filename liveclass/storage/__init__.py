from .base import LiveClassFilters, LiveClassStore
from .memory import InMemoryLiveClassStore

__all__ = ["InMemoryLiveClassStore", "LiveClassFilters", "LiveClassStore"]
