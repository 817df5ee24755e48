"""Base64 wire encoding used by the contents endpoints."""

from __future__ import annotations

import base64
import binascii

from gitea_backend.domain.exceptions import ResponseParseError


def encode_base64(content: str | bytes) -> str:
    """Encode text (as UTF-8) or bytes to a base64 string."""
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


def decode_base64(payload: str, *, as_text: bool = True) -> str | bytes:
    """Decode a base64 payload into UTF-8 text or bytes.

    Gitea wraps long payloads across lines, so whitespace is stripped first.
    """
    compact = "".join(payload.split())
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ResponseParseError(f"Invalid base64 payload: {exc}") from exc
    if not as_text:
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ResponseParseError(f"File content is not valid UTF-8: {exc}") from exc


def decode_raw(raw: bytes, *, as_text: bool = True) -> str | bytes:
    """Decode a raw (not base64) body into UTF-8 text or leave it as bytes."""
    if not as_text:
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ResponseParseError(f"File content is not valid UTF-8: {exc}") from exc
