"""
Anti-bot challenge handling.

When the upstream suspects automation it answers the JSON endpoint with an
HTML page that computes a session cookie in JavaScript (slowAES). The page
embeds the key, IV and ciphertext as quoted 32-hex-character strings, in
that order. These helpers detect such pages, rebuild the cookie value and
patch it into the cookie header. None of them touch the network.
"""

import logging
import re
from typing import Any, Optional

from .crypto import decrypt_hex

logger = logging.getLogger(__name__)

SESSION_TOKEN_COOKIE = "R3ACTLB"

CHALLENGE_FINGERPRINTS = (
    "<!DOCTYPE html>",
    "slowAES",
    "aes.min.js",
)

HEX_TOKEN_RE = re.compile(r'"([0-9a-f]{32})"')


def is_challenge_response(body: Any) -> bool:
    """
    Check whether a response body is an anti-bot challenge page.

    Only textual bodies qualify; a decoded JSON payload is never a challenge,
    even if it reports success=false.
    """
    if not isinstance(body, str):
        return False
    return any(marker in body for marker in CHALLENGE_FINGERPRINTS)


def try_extract_token(body: str) -> Optional[str]:
    """
    Extract and decrypt the session token embedded in a challenge page.

    Args:
        body: Raw challenge page text

    Returns:
        The token as hex, or None if fewer than three hex strings are found
        or decryption fails
    """
    matches = HEX_TOKEN_RE.findall(body or "")
    if len(matches) < 3:
        logger.debug(f"Challenge page has {len(matches)} hex tokens, need 3")
        return None

    key_hex, iv_hex, ciphertext_hex = matches[:3]
    token = decrypt_hex(key_hex, iv_hex, ciphertext_hex)
    return token or None


def patch_session_token(cookies: str, token: str) -> str:
    """
    Replace the session token field of a cookie header.

    All other fields keep their order; the token field always comes last.
    Patching twice with the same token gives the same header.
    """
    fields = []
    for part in cookies.split(";"):
        part = part.strip()
        if not part:
            continue
        name = part.split("=", 1)[0].strip()
        if name == SESSION_TOKEN_COOKIE:
            continue
        fields.append(part)

    fields.append(f"{SESSION_TOKEN_COOKIE}={token}")
    return "; ".join(fields)
