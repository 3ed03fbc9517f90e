"""Process-wide registry of the page cache backend."""

from logging import getLogger
from typing import ClassVar

from .backends import BaseCacheBackend
from .backends import FileBackend
from .config import PageCacheConfig
from .exceptions import BackendNotFoundError

logger = getLogger(__name__)


class BackendProxy:
    """Hold the store shared by the middleware, ``page_cache`` and invalidation.

    Pages must be purged from the same store they are served from, so every
    consumer that is not handed a backend explicitly resolves it here.
    """

    _backend: ClassVar[BaseCacheBackend | None] = None

    @classmethod
    def get_backend(cls) -> BaseCacheBackend:
        """Get the registered page cache backend.

        Raises:
            BackendNotFoundError: If no backend has been registered
        """
        if cls._backend is None:
            msg = "No page cache backend registered. Call BackendProxy.set_backend() first."
            raise BackendNotFoundError(msg)

        return cls._backend

    @classmethod
    def set_backend(cls, backend: BaseCacheBackend | None) -> None:
        """Register ``backend``, or clear the registration with None."""
        previous = cls._backend
        if previous is not None and backend is not None and previous is not backend:
            # Pages still held by the old store are no longer reached by purges
            logger.warning(
                "Replacing page cache backend <%s> with <%s>",
                previous.__class__.__name__,
                backend.__class__.__name__,
            )
        else:
            logger.info(
                "Setting page cache backend to: <%s>",
                backend.__class__.__name__ if backend else "None",
            )
        cls._backend = backend

    @classmethod
    def get_or_create_backend(cls, config: PageCacheConfig) -> BaseCacheBackend:
        """Get the registered backend, registering a FileBackend under ``config.cache_dir`` if none is."""
        if cls._backend is None:
            cls.set_backend(FileBackend(config.cache_dir))
        return cls.get_backend()
