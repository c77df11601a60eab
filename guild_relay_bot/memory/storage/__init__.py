from .policies import MemoryPoliciesMixin
from .schema import MemorySchemaMixin
from .turns import MemoryTurnsMixin

__all__ = [
    "MemorySchemaMixin",
    "MemoryTurnsMixin",
    "MemoryPoliciesMixin",
]
