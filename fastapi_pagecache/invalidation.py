"""Purge the page cache whenever rendered content may have changed.

Invalidation is deliberately whole-store: which cached pages embed a given
piece of content is not tracked, so every content event empties the cache.
The one hour TTL bounds staleness even if an event is missed.
"""

from collections import defaultdict
from collections.abc import Awaitable
from collections.abc import Callable
from enum import Enum
from logging import getLogger
from typing import Optional
from typing import Union

from fastapi_pagecache.backends import BaseCacheBackend
from fastapi_pagecache.exceptions import BackendNotFoundError
from fastapi_pagecache.proxy import BackendProxy

logger = getLogger(__name__)


class ContentEvent(str, Enum):
    CONTENT_SAVED = "content_saved"
    CONTENT_DELETED = "content_deleted"
    THEME_SWITCHED = "theme_switched"
    CUSTOMIZATION_SAVED = "customization_saved"


EventHandler = Callable[[ContentEvent], Awaitable[object]]


class ContentEventBus:
    """Named content-mutation events and their subscribers."""

    def __init__(self) -> None:
        self._handlers: dict[ContentEvent, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: Union[ContentEvent, str], handler: EventHandler) -> None:
        self._handlers[ContentEvent(event)].append(handler)

    async def publish(self, event: Union[ContentEvent, str]) -> None:
        """Run every subscriber of ``event`` to completion, in subscription order."""
        event = ContentEvent(event)
        for handler in list(self._handlers[event]):
            await handler(event)


class InvalidationTrigger:
    """Empty the page cache on every content event.

    Args:
        backend: Store to purge; defaults to the backend registered with BackendProxy
    """

    def __init__(self, backend: Optional[BaseCacheBackend] = None) -> None:
        self.backend = backend

    def attach(self, bus: ContentEventBus) -> None:
        for event in ContentEvent:
            bus.subscribe(event, self.purge)

    async def purge(self, event: Optional[ContentEvent] = None) -> bool:
        """Purge the store. Failures are logged, never raised to the publisher.

        Returns:
            True if the store was purged
        """
        reason = event.value if event is not None else "manual purge"
        try:
            backend = self.backend or BackendProxy.get_backend()
        except BackendNotFoundError:
            logger.warning("No cache backend registered, nothing to purge on %s", reason)
            return False

        try:
            removed = await backend.purge_all()
        except Exception:
            # Content mutations must go through even if the cache cannot be emptied
            logger.exception("Unable to purge page cache on %s", reason)
            return False

        logger.info("Page cache purged on %s (%d entries removed)", reason, removed)
        return True
