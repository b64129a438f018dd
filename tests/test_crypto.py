"""Tests for wxapi.crypto -- callback signatures and payload decryption."""

from __future__ import annotations

import base64
import hashlib
import json

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from wxapi.crypto import decrypt_payload, verify_origin_signature
from wxapi.exceptions import DecryptionError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _encrypt(key: bytes, iv: bytes, plaintext: bytes) -> str:
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return base64.b64encode(encryptor.update(padded) + encryptor.finalize()).decode()


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


KEY = bytes(range(16))
IV = bytes(range(16, 32))
PAYLOAD = {
    "openId": "oGZUI0egBJY1zhBYw2KhdUfwVJJE",
    "nickName": "Band",
    "watermark": {"timestamp": 1477314187, "appid": "wx4f4bc4dec97d474b"},
}


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


class TestVerifyOriginSignature:
    def _sign(self, token: str, timestamp: str, nonce: str) -> str:
        return hashlib.sha1("".join(sorted([token, timestamp, nonce])).encode()).hexdigest()

    def test_valid(self) -> None:
        signature = self._sign("token", "1713400000", "abc123")
        assert verify_origin_signature("token", "1713400000", "abc123", signature) is True

    def test_argument_order_does_not_matter_for_digest(self) -> None:
        signature = self._sign("nonce", "token", "1713400000")
        assert verify_origin_signature("token", "1713400000", "nonce", signature) is True

    @pytest.mark.parametrize(
        "token,timestamp,nonce",
        [("other", "1713400000", "abc123"), ("token", "1713400001", "abc123"), ("token", "1713400000", "abc124")],
    )
    def test_any_change_invalidates(self, token: str, timestamp: str, nonce: str) -> None:
        signature = self._sign("token", "1713400000", "abc123")
        assert verify_origin_signature(token, timestamp, nonce, signature) is False

    def test_empty_signature(self) -> None:
        assert verify_origin_signature("token", "1", "2", "") is False


# ---------------------------------------------------------------------------
# Decryption
# ---------------------------------------------------------------------------


class TestDecryptPayload:
    def test_decrypts_json(self) -> None:
        encrypted = _encrypt(KEY, IV, json.dumps(PAYLOAD).encode())
        assert decrypt_payload(_b64(KEY), _b64(IV), encrypted) == PAYLOAD

    def test_wrong_key(self) -> None:
        encrypted = _encrypt(KEY, IV, json.dumps(PAYLOAD).encode())
        with pytest.raises(DecryptionError):
            decrypt_payload(_b64(b"\x01" * 16), _b64(IV), encrypted)

    def test_invalid_base64(self) -> None:
        with pytest.raises(DecryptionError):
            decrypt_payload("not base64!", _b64(IV), "AAAA")

    def test_bad_key_length(self) -> None:
        encrypted = _encrypt(KEY, IV, b"{}")
        with pytest.raises(DecryptionError):
            decrypt_payload(_b64(b"short"), _b64(IV), encrypted)

    def test_truncated_ciphertext(self) -> None:
        encrypted = base64.b64decode(_encrypt(KEY, IV, json.dumps(PAYLOAD).encode()))
        with pytest.raises(DecryptionError):
            decrypt_payload(_b64(KEY), _b64(IV), _b64(encrypted[:-3]))

    def test_plaintext_not_json(self) -> None:
        encrypted = _encrypt(KEY, IV, b"hello world")
        with pytest.raises(DecryptionError):
            decrypt_payload(_b64(KEY), _b64(IV), encrypted)

    def test_message_has_no_details(self) -> None:
        with pytest.raises(DecryptionError) as exc_info:
            decrypt_payload("!!", "!!", "!!")
        assert str(exc_info.value) == "decryption failed"
        assert exc_info.value.__cause__ is None
