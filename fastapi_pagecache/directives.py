"""Cache-Control directives."""

from enum import Enum
from typing import Optional


class DirectiveType(Enum):
    MAX_AGE = "max-age"
    NO_CACHE = "no-cache"
    NO_STORE = "no-store"
    PUBLIC = "public"
    PRIVATE = "private"
    IMMUTABLE = "immutable"
    MUST_REVALIDATE = "must-revalidate"


class CacheControl:
    def __init__(self) -> None:
        self.directives: list[str] = []

    def add(self, directive: DirectiveType, value: Optional[int] = None) -> None:
        if value is not None:
            self.directives.append(f"{directive.value}={value}")
        else:
            self.directives.append(directive.value)

    def __str__(self) -> str:
        return ", ".join(self.directives)

    @classmethod
    def parse(cls, value: str) -> set[str]:
        """Return the directive names present in a Cache-Control header value."""
        names = set()
        for part in value.split(","):
            name = part.split("=", 1)[0].strip().lower()
            if name:
                names.add(name)
        return names


def page_cache_control(max_age: int) -> str:
    """Cache-Control value sent with cached page responses."""
    cache_control = CacheControl()
    cache_control.add(DirectiveType.PUBLIC)
    cache_control.add(DirectiveType.MAX_AGE, max_age)
    return str(cache_control)


def static_cache_control(max_age: int) -> str:
    """Cache-Control value sent with static assets, which never change in place."""
    cache_control = CacheControl()
    cache_control.add(DirectiveType.PUBLIC)
    cache_control.add(DirectiveType.MAX_AGE, max_age)
    cache_control.add(DirectiveType.IMMUTABLE)
    return str(cache_control)
