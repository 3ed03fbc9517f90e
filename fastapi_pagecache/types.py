"""Type definitions and type aliases for FastAPI-PageCache."""

from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum

from pydantic import BaseModel
from pydantic import Field

# Fixed lifetime of a cached page, in seconds (1 hour)
PAGE_CACHE_TTL = 3600

# Cache key separator - using ||| so that no path, query or scheme can bleed into its neighbour
CACHE_KEY_SEPARATOR = "|||"

CacheKey = str
HeaderList = list[tuple[str, str]]


class RequestFlag(str, Enum):
    """Request contexts that always bypass the page cache."""

    ADMIN = "admin"
    AUTHENTICATED = "authenticated"
    AJAX = "ajax"
    CRON = "cron"


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything the cache layer needs to know about an inbound request.

    Args:
        method: HTTP method, upper-case
        scheme: URL scheme ("http" or "https")
        path: Request path, without host or query string
        query_string: Raw query string, without the leading "?"
        headers: Request headers keyed by lower-cased name
        flags: Contexts (admin, authenticated, ajax, cron) the request was made in
    """

    method: str
    scheme: str
    path: str
    query_string: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    flags: frozenset[RequestFlag] = frozenset()

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


@dataclass
class PageResponse:
    """Status, headers and body of a response.

    Render capabilities return one of these and the negotiator produces one.
    ``headers_sent`` is set by renderers that already flushed their headers,
    such responses are never cached.
    """

    status_code: int
    headers: HeaderList = field(default_factory=list)
    body: bytes = b""
    headers_sent: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.headers, Mapping):
            self.headers = list(self.headers.items())
        else:
            self.headers = list(self.headers)
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    def header(self, name: str) -> str | None:
        """Return the first value of header ``name`` (case-insensitive)."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None

    def set_header(self, name: str, value: str) -> None:
        """Replace every value of header ``name`` with ``value``."""
        self.remove_header(name)
        self.headers.append((name, value))

    def set_default_header(self, name: str, value: str) -> None:
        if self.header(name) is None:
            self.headers.append((name, value))

    def remove_header(self, name: str) -> None:
        name = name.lower()
        self.headers = [(k, v) for k, v in self.headers if k.lower() != name]

    def extend_headers(self, headers: Iterable[tuple[str, str]]) -> None:
        for name, value in headers:
            self.set_header(name, value)


@dataclass
class CachedEntry:
    """A rendered page held by the store.

    Args:
        body: Response bytes as rendered, before any content-encoding
        etag: Content hash of ``body``
        created_at: Epoch timestamp of the capture
        size: Length of ``body`` in bytes
        content_type: Content-Type of the captured response
        source: Request target the page was captured for
        headers: Response headers replayed on every hit
    """

    body: bytes
    etag: str
    created_at: float
    size: int
    content_type: str | None = None
    source: str = ""
    headers: HeaderList = field(default_factory=list)

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_fresh(self, now: float, ttl: int = PAGE_CACHE_TTL) -> bool:
        return self.age(now) < ttl


class EntryInfo(BaseModel):
    """Metadata of a stored entry, without its body."""

    key: str = Field(..., description="Cache key the entry is stored under")
    etag: str = Field(..., description="Content hash of the stored body")
    created_at: float = Field(..., description="Epoch timestamp of the capture")
    size: int = Field(..., ge=0, description="Body length in bytes")
    content_type: str | None = Field(
        default=None, description="Content-Type of the captured response"
    )
    source: str = Field(
        default="", description="Request target the page was captured for"
    )
    headers: HeaderList = Field(
        default_factory=list, description="Response headers replayed on every hit"
    )
