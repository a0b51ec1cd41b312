"""SHA-256 fingerprints over canonical document bytes."""

from __future__ import annotations

import hashlib
import hmac


def hash_xml(xml: bytes) -> str:
    """Return the 64-character lowercase hex SHA-256 digest of ``xml``."""

    return hashlib.sha256(xml).hexdigest()


def verify_hash(xml: bytes, expected: str) -> bool:
    """Return ``True`` when ``expected`` is the digest of ``xml``."""

    return hmac.compare_digest(hash_xml(xml).encode("ascii"), expected.encode("utf-8"))


__all__ = ["hash_xml", "verify_hash"]
