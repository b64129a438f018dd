"""Stateless verification and decryption helpers.

* :func:`verify_origin_signature` -- checks that a callback really comes
  from the platform server (SHA-1 over the sorted token, timestamp and
  nonce).
* :func:`decrypt_payload` -- decrypts mini-program user data
  (AES-128-CBC, PKCS#7 padding, base64 inputs, JSON plaintext).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from wxapi.exceptions import DecryptionError


def verify_origin_signature(token: str, timestamp: str, nonce: str, signature: str) -> bool:
    """Return ``True`` if *signature* matches the sorted-concat SHA-1 digest.

    Args:
        token: The token configured on the platform console.
        timestamp: ``timestamp`` query parameter of the callback.
        nonce: ``nonce`` query parameter of the callback.
        signature: ``signature`` query parameter of the callback (hex).
    """
    joined = "".join(sorted([token, timestamp, nonce]))
    digest = hashlib.sha1(joined.encode("utf-8")).hexdigest()
    return hmac.compare_digest(digest, signature or "")


def decrypt_payload(session_key: str, iv: str, encrypted_data: str) -> Any:
    """Decrypt and parse an encrypted mini-program payload.

    Args:
        session_key: Base64 session key (16 bytes once decoded).
        iv: Base64 initialisation vector.
        encrypted_data: Base64 ciphertext.

    Returns:
        The decoded JSON object.

    Raises:
        DecryptionError: On any decoding, decryption, unpadding or JSON
            failure. The message never includes cipher details.
    """
    try:
        key = base64.b64decode(session_key, validate=True)
        iv_bytes = base64.b64decode(iv, validate=True)
        ciphertext = base64.b64decode(encrypted_data, validate=True)

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv_bytes)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()

        return json.loads(plaintext.decode("utf-8"))
    except (binascii.Error, ValueError, TypeError):
        raise DecryptionError() from None
