"""HTTP header helpers: ETags, Accept-Encoding negotiation and dates."""

import gzip
import hashlib
from email.utils import formatdate


def compute_etag(content: bytes) -> str:
    """Weak ETag for a page body.

    Weak, so the same tag stays valid for the gzip-encoded form of the body.
    """
    return f'W/"{hashlib.md5(content).hexdigest()}"'  # noqa: S324


def compute_strong_etag(content: bytes) -> str:
    return f'"{hashlib.md5(content).hexdigest()}"'  # noqa: S324


def _opaque_tag(etag: str) -> str:
    etag = etag.strip()
    if etag.startswith("W/"):
        etag = etag[2:]
    return etag


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """Weak comparison of an If-None-Match header against ``etag``."""
    if not if_none_match:
        return False

    if if_none_match.strip() == "*":
        return True

    target = _opaque_tag(etag)
    return any(
        _opaque_tag(candidate) == target
        for candidate in if_none_match.split(",")
        if candidate.strip()
    )


def accepted_encodings(accept_encoding: str | None) -> dict[str, float]:
    """Parse an Accept-Encoding header into ``{coding: qvalue}``."""
    encodings: dict[str, float] = {}
    if not accept_encoding:
        return encodings

    for part in accept_encoding.split(","):
        coding, _, params = part.strip().partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue

        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        encodings[coding] = quality

    return encodings


def accepts_encoding(accept_encoding: str | None, coding: str) -> bool:
    """Return True if the client advertises support for ``coding``."""
    encodings = accepted_encodings(accept_encoding)
    if coding in encodings:
        return encodings[coding] > 0
    return encodings.get("*", 0) > 0


def http_date(timestamp: float) -> str:
    """Format an epoch timestamp as an RFC 1123 date (``Expires`` header)."""
    return formatdate(timestamp, usegmt=True)


def gzip_body(body: bytes, level: int = 6) -> bytes:
    return gzip.compress(body, compresslevel=level)
