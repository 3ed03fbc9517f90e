"""Cache backend implementations for FastAPI-PageCache."""

from .base import BaseCacheBackend
from .file import FileBackend
from .memory import MemoryBackend

__all__ = [
    "BaseCacheBackend",
    "FileBackend",
    "MemoryBackend",
]
