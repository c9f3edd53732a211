import pytest

from oauth_gate.services.token_cipher import TokenCipherService


def test_encrypt_round_trip_marks_ciphertext() -> None:
    cipher = TokenCipherService(secret="super-secret")

    encrypted = cipher.encrypt("access-token")

    assert encrypted is not None
    assert encrypted.startswith("fernet:")
    assert "access-token" not in encrypted
    assert cipher.decrypt(encrypted) == "access-token"


def test_none_and_plaintext_values_pass_through() -> None:
    cipher = TokenCipherService(secret="super-secret")

    assert cipher.encrypt(None) is None
    assert cipher.decrypt(None) is None
    assert cipher.decrypt("legacy-plain-token") == "legacy-plain-token"


def test_decrypt_with_wrong_secret_raises_value_error() -> None:
    encrypted = TokenCipherService(secret="one").encrypt("token")

    with pytest.raises(ValueError, match="invalid ciphertext"):
        TokenCipherService(secret="two").decrypt(encrypted)


def test_empty_secret_is_rejected() -> None:
    with pytest.raises(ValueError):
        TokenCipherService(secret="")
