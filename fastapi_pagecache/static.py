"""Direct delivery of static assets with long-lived caching headers.

Static assets are treated as immutable: a new version is published under a new
path, so every hit is served with a one year ``max-age`` and ``immutable``.
Stylesheets and scripts are negotiated against precompressed ``.br`` / ``.gz``
siblings written at build time.
"""

import os
import time
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from logging import getLogger
from pathlib import Path
from typing import Optional

import anyio.to_thread

from fastapi_pagecache.directives import static_cache_control
from fastapi_pagecache.headers import accepts_encoding
from fastapi_pagecache.headers import compute_strong_etag
from fastapi_pagecache.headers import http_date
from fastapi_pagecache.types import PageResponse
from fastapi_pagecache.types import RequestDescriptor

STATIC_MAX_AGE = 31536000

MIME_TYPES = {
    "css": "text/css",
    "js": "application/javascript",
    "mjs": "application/javascript",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "eot": "font/eot",
    "lottie": "application/json",
    "dotlottie": "application/json",
}

STATIC_EXTENSIONS = frozenset(MIME_TYPES)

# Only text assets are shipped with precompressed siblings
COMPRESSIBLE_EXTENSIONS = frozenset({"css", "js", "mjs"})

# Content codings in order of preference, with the suffix of their sibling file
ENCODING_SUFFIXES = (("br", ".br"), ("gzip", ".gz"))

logger = getLogger(__name__)


@dataclass(frozen=True)
class StaticAssetDescriptor:
    """A static file found under the document root.

    Args:
        path: Absolute path of the uncompressed file
        extension: Lower-cased file extension
        media_type: MIME type, or None for extensions missing from MIME_TYPES
        variants: Precompressed siblings keyed by content coding
    """

    path: Path
    extension: str
    media_type: Optional[str]
    variants: Mapping[str, Path] = field(default_factory=dict)

    @property
    def compressible(self) -> bool:
        return self.extension in COMPRESSIBLE_EXTENSIONS


def asset_extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


class StaticAssetResolver:
    """Resolve request paths to files under ``document_root`` and serve them."""

    def __init__(
        self,
        document_root: str | os.PathLike[str],
        max_age: int = STATIC_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.document_root = Path(document_root).resolve()
        self.max_age = max_age
        self.clock = clock

    def resolve(self, path: str) -> Optional[StaticAssetDescriptor]:
        """Map a request path to a static file, or None if it is not one."""
        extension = asset_extension(path)
        if extension not in STATIC_EXTENSIONS:
            return None

        try:
            file_path = (self.document_root / path.lstrip("/")).resolve()
            if not file_path.is_relative_to(self.document_root):
                logger.warning("Refusing static path outside document root: %s", path)
                return None

            if not file_path.is_file():
                return None

            variants = {}
            if extension in COMPRESSIBLE_EXTENSIONS:
                for coding, suffix in ENCODING_SUFFIXES:
                    sibling = file_path.with_name(file_path.name + suffix)
                    if sibling.is_file():
                        variants[coding] = sibling
        except (OSError, ValueError) as e:
            # Null bytes, over-long names and the like cannot name a file
            logger.debug("Unusable static path %r: %s", path, e)
            return None

        return StaticAssetDescriptor(
            path=file_path,
            extension=extension,
            media_type=MIME_TYPES.get(extension),
            variants=variants,
        )

    @staticmethod
    def select_variant(
        asset: StaticAssetDescriptor, accept_encoding: Optional[str]
    ) -> tuple[Path, Optional[str]]:
        """Pick the file to send and its content coding (None = uncompressed)."""
        if asset.compressible:
            for coding, _ in ENCODING_SUFFIXES:
                if coding in asset.variants and accepts_encoding(
                    accept_encoding, coding
                ):
                    return asset.variants[coding], coding
        return asset.path, None

    async def serve(self, request: RequestDescriptor) -> Optional[PageResponse]:
        """Serve the static file named by ``request``.

        Returns None, letting the request fall through to rendering, when the
        path is not a static asset or the file does not exist.
        """
        if request.method not in ("GET", "HEAD"):
            return None

        if asset_extension(request.path) not in STATIC_EXTENSIONS:
            return None

        asset = await anyio.to_thread.run_sync(self.resolve, request.path)
        if asset is None:
            return None

        file_path, coding = self.select_variant(
            asset, request.header("accept-encoding")
        )
        try:
            body = await anyio.to_thread.run_sync(file_path.read_bytes)
        except (FileNotFoundError, IsADirectoryError):
            # Removed or replaced between resolve and read
            return None

        response = PageResponse(status_code=200, body=body)
        if asset.media_type is not None:
            response.set_header("Content-Type", asset.media_type)
        if asset.compressible:
            response.set_header("Vary", "Accept-Encoding")
        if coding is not None:
            response.set_header("Content-Encoding", coding)
        response.set_header("Cache-Control", static_cache_control(self.max_age))
        response.set_header("Expires", http_date(self.clock() + self.max_age))
        response.set_header("ETag", compute_strong_etag(body))

        logger.debug(
            "Serving static asset %s (encoding: %s)", request.path, coding or "identity"
        )
        return response
