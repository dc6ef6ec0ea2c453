from datetime import timedelta

from app.security_utils import (
    create_admin_token,
    create_jwt_token,
    create_user_token,
    hash_password_bcrypt,
    is_legacy_hash,
    legacy_password_hash,
    verify_admin_password,
    verify_jwt_token,
)


def test_legacy_hash_known_values():
    assert legacy_password_hash("") == "0"
    assert legacy_password_hash("a") == "61"
    assert legacy_password_hash("ab") == "c21"


def test_legacy_hash_wraps_to_signed_32_bits():
    value = legacy_password_hash("a much longer admin password")
    assert is_legacy_hash(value)
    assert len(value.lstrip("-")) <= 8


def test_verify_admin_password_with_bcrypt():
    stored = hash_password_bcrypt("correct horse")
    assert not is_legacy_hash(stored)
    assert verify_admin_password("correct horse", stored)
    assert not verify_admin_password("wrong horse", stored)


def test_verify_admin_password_accepts_legacy_hash():
    stored = legacy_password_hash("letmein123")
    assert verify_admin_password("letmein123", stored)
    assert not verify_admin_password("letmein124", stored)


def test_verify_admin_password_without_stored_hash():
    assert not verify_admin_password("anything", "")


def test_admin_and_user_tokens_round_trip():
    admin = verify_jwt_token(create_admin_token())
    assert admin["role"] == "admin"
    assert admin["exp"] - admin["iat"] == 3600

    user = verify_jwt_token(create_user_token("u-1", "ada@example.com", "Ada"))
    assert user["role"] == "user"
    assert user["email"] == "ada@example.com"
    assert user["exp"] - user["iat"] == 30 * 24 * 3600


def test_expired_or_tampered_tokens_are_rejected():
    expired = create_jwt_token({"role": "admin"}, timedelta(seconds=-10))
    assert verify_jwt_token(expired) is None
    assert verify_jwt_token(create_admin_token() + "x") is None
