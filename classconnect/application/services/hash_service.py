"""Hashing for reset tokens (only the digest is persisted)."""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def hash(self, data: str) -> str:
        """Compute hash of input string."""
        ...


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation (hex digest, as stored in resetTokenHash)."""

    def hash(self, data: str) -> str:
        return hashlib.sha256(data.encode()).hexdigest()


class TokenHashService:
    """Single source of truth for reset-token digests."""

    def __init__(self, algorithm: HashAlgorithm | None = None) -> None:
        self.algorithm = algorithm or SHA256Algorithm()

    def hash_token(self, token: str) -> str:
        return self.algorithm.hash(token)

    def matches(self, token: str, stored_hash: str) -> bool:
        """Constant-time comparison of a raw token against a stored digest."""
        return hmac.compare_digest(self.hash_token(token), stored_hash)
