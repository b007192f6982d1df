from __future__ import annotations

import pytest

from auth_service.security.passwords import HashingFailure, PasswordHasher


def test_hash_uses_fresh_salt_each_call(hasher):
    first = hasher.hash("s3cret!")
    second = hasher.hash("s3cret!")

    assert first != second
    assert "s3cret!" not in first
    assert hasher.verify("s3cret!", first)
    assert hasher.verify("s3cret!", second)


@pytest.mark.parametrize("other", ["s3cret", "S3cret!", "s3cret! ", ""])
def test_verify_rejects_different_secret(hasher, other):
    assert not hasher.verify(other, hasher.hash("s3cret!"))


def test_hash_embeds_configured_cost(hasher):
    assert hasher.hash("s3cret!").startswith("$2b$04$")


def test_verify_treats_malformed_hash_as_mismatch(hasher):
    assert hasher.verify("s3cret!", "not-a-bcrypt-hash") is False
    assert hasher.verify("s3cret!", "") is False


def test_verify_fails_on_undecodable_hash(hasher):
    with pytest.raises(HashingFailure):
        hasher.verify("s3cret!", "$2b$04$é")


def test_hash_rejects_secret_over_bcrypt_limit(hasher):
    with pytest.raises(HashingFailure):
        hasher.hash("x" * 73)


def test_verify_dummy_never_matches(hasher):
    assert hasher.verify_dummy("auth-service-timing-reference") is False


@pytest.mark.parametrize("rounds", [3, 32])
def test_rejects_out_of_range_cost(rounds):
    with pytest.raises(ValueError):
        PasswordHasher(rounds=rounds)


def test_cost_factor_is_fixed_by_configuration():
    hasher = PasswordHasher(rounds=5)

    assert hasher.rounds == 5
    assert hasher.hash("s3cret!").startswith("$2b$05$")
