import base64

import pytest

from backend.security import PasswordHasher

hasher = PasswordHasher()


def test_password_hashing_roundtrip():
    raw = "s3cr3tPa55!"
    hashed = hasher.hash(raw)
    assert hasher.verify(raw, hashed), "Пароль после хеширования не верифицируется"

    # хеши разные при каждом вызове
    assert hashed != hasher.hash(raw)


def test_hash_layout_is_salt_plus_key():
    decoded = base64.b64decode(hasher.hash("whatever"))
    assert len(decoded) == PasswordHasher.SALT_SIZE + PasswordHasher.HASH_SIZE == 48


def test_hash_never_contains_plaintext():
    raw = "plaintext-password"
    assert raw not in hasher.hash(raw)


@pytest.mark.parametrize(
    "stored, attempt",
    [
        ("correct horse", "correct hors"),
        ("Password", "password"),
        ("пароль", "парол"),
        ("", " "),
    ],
)
def test_other_password_rejected(stored, attempt):
    assert hasher.verify(attempt, hasher.hash(stored)) is False


def test_unicode_and_empty_passwords_verify():
    for raw in ("", "пароль-🔑", " spaced out "):
        assert hasher.verify(raw, hasher.hash(raw)) is True


@pytest.mark.parametrize(
    "digest",
    [
        "not-a-valid-digest",
        "",
        "%%%%",
        base64.b64encode(b"too short").decode(),
        base64.b64encode(b"x" * 49).decode(),
        "тоже-не-хеш",
        None,
    ],
)
def test_malformed_digest_is_a_failed_check(digest):
    assert hasher.verify("anything", digest) is False


def test_tampered_digest_rejected():
    hashed = hasher.hash("secret")
    raw = bytearray(base64.b64decode(hashed))
    raw[-1] ^= 0x01
    assert hasher.verify("secret", base64.b64encode(bytes(raw)).decode()) is False


def test_entropy_failure_is_fatal(monkeypatch):
    from backend import security
    from backend.errors import FatalFailure

    def broken(_n):
        raise OSError("no entropy")

    monkeypatch.setattr(security.secrets, "token_bytes", broken)
    with pytest.raises(FatalFailure):
        hasher.hash("secret")
