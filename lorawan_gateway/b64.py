"""Base64 helpers for binary identifiers and hashes."""

from __future__ import annotations

import base64


def to_b64(data: bytes) -> str:
    """Encode with the standard alphabet, padded."""
    return base64.b64encode(bytes(data)).decode("ascii")


def to_b64url(data: bytes) -> str:
    """Encode with the URL-safe alphabet, without padding."""
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")