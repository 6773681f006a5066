from __future__ import annotations

from app.security.passwords import BcryptPasswordHasher


def test_hash_is_salted_and_verifiable():
    hasher = BcryptPasswordHasher(rounds=4)
    first = hasher.hash("secret1")
    second = hasher.hash("secret1")
    assert first != second
    assert "secret1" not in first
    assert hasher.verify("secret1", first)
    assert hasher.verify("secret1", second)
    assert not hasher.verify("secret2", first)


def test_malformed_digest_never_matches():
    hasher = BcryptPasswordHasher(rounds=4)
    assert not hasher.verify("secret1", "not-a-bcrypt-hash")


def test_long_passwords_are_accepted():
    hasher = BcryptPasswordHasher(rounds=4)
    password = "ç" * 100
    digest = hasher.hash(password)
    assert hasher.verify(password, digest)
