"""
Short Code Generator

Produces candidate short codes; uniqueness is never assumed here. The
storage layer enforces it and the URL service retries on collision.

Design Decisions:
- Base62 alphabet [0-9a-zA-Z]: URL-safe, case-sensitive, compact
- Random, not counter-based: codes reveal nothing about volume or order
- ``secrets`` as the random source so codes are not predictable
- Fixed length 6 by default: 62^6 ~ 56.8 billion codes
"""

import secrets

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class ShortCodeGenerator:
    """Generates fixed-length codes drawn uniformly from the base62 alphabet."""

    def __init__(self, length: int = 6):
        if length < 1:
            raise ValueError("Short code length must be positive")
        self.length = length

    def generate(self) -> str:
        return "".join(secrets.choice(BASE62_CHARS) for _ in range(self.length))
