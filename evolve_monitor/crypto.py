"""
Block decryption helper used to rebuild the anti-bot session token.

The challenge page ships its key, IV and ciphertext as hex strings and
expects the browser to AES-128-CBC decrypt them without unpadding.
"""

import binascii
import logging

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

AES_128_KEY_BYTES = 16


def decrypt_hex(key_hex: str, iv_hex: str, ciphertext_hex: str) -> str:
    """
    Decrypt hex-encoded AES-128-CBC ciphertext without removing padding.

    Args:
        key_hex: 16-byte key as hex
        iv_hex: 16-byte IV as hex
        ciphertext_hex: Block-aligned ciphertext as hex

    Returns:
        The plaintext as lowercase hex, or "" if any input is malformed
        or decryption fails. Callers must treat "" as a failure.
    """
    try:
        key = binascii.unhexlify(key_hex)
        iv = binascii.unhexlify(iv_hex)
        ciphertext = binascii.unhexlify(ciphertext_hex)

        if len(key) != AES_128_KEY_BYTES:
            raise ValueError(f"expected a {AES_128_KEY_BYTES}-byte key, got {len(key)}")

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        plaintext = decryptor.update(ciphertext) + decryptor.finalize()
    except (binascii.Error, ValueError, TypeError) as e:
        logger.error(f"Token decryption failed: {e}")
        return ""

    return plaintext.hex()
