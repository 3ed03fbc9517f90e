"""Page cache configuration settings."""

from pathlib import Path
from tempfile import gettempdir

from pydantic import BaseModel
from pydantic import Field


class PageCacheConfig(BaseModel):
    """Page cache configuration settings."""

    # Storage
    cache_dir: Path = Field(
        default=Path(gettempdir()) / "fastapi-pagecache",
        description="Directory holding cached pages, kept apart from any served web root",
    )

    # Static assets
    document_root: Path | None = Field(
        default=None,
        description="Directory static assets are served from (None = no static serving)",
    )
    static_max_age: int = Field(
        default=31536000,
        ge=0,
        description="max-age for static assets in seconds (default: 1 year)",
    )

    # Page responses
    page_max_age: int = Field(
        default=3600,
        ge=0,
        description="max-age sent with cached page responses in seconds (default: 1 hour)",
    )
    compress_pages: bool = Field(
        default=True,
        description="Whether to gzip page responses for clients that accept it",
    )
    gzip_minimum_size: int = Field(
        default=500,
        ge=0,
        description="Smallest page body, in bytes, worth compressing",
    )
    gzip_level: int = Field(
        default=6,
        ge=1,
        le=9,
        description="gzip compression level for page responses",
    )
    security_headers: dict[str, str] = Field(
        default={
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "SAMEORIGIN",
        },
        description="Headers added to every page-cache response",
    )

    # Bypass detection
    admin_path_prefixes: list[str] = Field(
        default=["/admin"],
        description="Path prefixes of administrative pages",
    )
    cron_path_prefixes: list[str] = Field(
        default=["/cron"],
        description="Path prefixes of scheduled-task endpoints",
    )
    auth_cookie_names: list[str] = Field(
        default=["fastapi_session"],
        description="Cookie names (or name prefixes) that mark a logged-in visitor",
    )
