"""Tests for TokenHashService (reset token digests)."""

from classconnect.application.services.hash_service import (
    SHA256Algorithm,
    TokenHashService,
)


class TestHashAlgorithm:
    def test_sha256_deterministic(self) -> None:
        a = SHA256Algorithm()
        assert a.hash("hello") == a.hash("hello")
        assert a.hash("hello") == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


class TestTokenHashService:
    """Raw tokens are compared only through their digest."""

    def test_hash_is_not_the_token(self) -> None:
        svc = TokenHashService()
        digest = svc.hash_token("secret-token")
        assert digest != "secret-token"
        assert len(digest) == 64

    def test_matches_same_token(self) -> None:
        svc = TokenHashService()
        assert svc.matches("secret-token", svc.hash_token("secret-token")) is True

    def test_rejects_other_token(self) -> None:
        svc = TokenHashService()
        assert svc.matches("other-token", svc.hash_token("secret-token")) is False
