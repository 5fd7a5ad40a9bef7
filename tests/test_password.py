"""Password hashing tests."""

from taskhub.auth.password import hash_password, verify_password


def test_hash_verifies_original_password():
    hashed = hash_password("Passw0rd1")
    assert verify_password("Passw0rd1", hashed)


def test_hash_rejects_other_password():
    hashed = hash_password("Passw0rd1")
    assert not verify_password("Passw0rd2", hashed)
    assert not verify_password("", hashed)


def test_hash_is_salted_and_irreversible():
    a = hash_password("same-password")
    b = hash_password("same-password")
    assert a != b
    assert "same-password" not in a


def test_hash_uses_configured_cost_factor():
    assert hash_password("x" * 8).startswith("$2b$10$")
    assert hash_password("x" * 8, rounds=11).startswith("$2b$11$")


def test_malformed_hash_is_not_a_match():
    assert verify_password("Passw0rd1", "not-a-bcrypt-hash") is False
