from evolve_monitor.challenge import (
    SESSION_TOKEN_COOKIE,
    is_challenge_response,
    patch_session_token,
    try_extract_token,
)
from evolve_monitor.crypto import decrypt_hex

from conftest import CIPHERTEXT_HEX, IV_HEX, KEY_HEX, PLAINTEXT_HEX, challenge_page


def test_decrypt_known_vector():
    assert decrypt_hex(KEY_HEX, IV_HEX, CIPHERTEXT_HEX) == PLAINTEXT_HEX


def test_decrypt_does_not_unpad():
    # Two blocks of ciphertext must give back two full blocks of plaintext
    second_block = "5086cb9b507219ee95db113a917678b2"
    plaintext = decrypt_hex(KEY_HEX, IV_HEX, CIPHERTEXT_HEX + second_block)
    assert len(plaintext) == 64
    assert plaintext.startswith(PLAINTEXT_HEX)


def test_decrypt_malformed_input_returns_empty():
    assert decrypt_hex("zz" * 16, IV_HEX, CIPHERTEXT_HEX) == ""
    assert decrypt_hex(KEY_HEX[:16], IV_HEX, CIPHERTEXT_HEX) == ""
    assert decrypt_hex(KEY_HEX, IV_HEX, CIPHERTEXT_HEX[:30]) == ""


def test_extract_token_from_challenge_page():
    body = challenge_page(KEY_HEX, IV_HEX, CIPHERTEXT_HEX)
    assert try_extract_token(body) == PLAINTEXT_HEX


def test_extract_token_uses_first_three_matches():
    body = challenge_page(KEY_HEX, IV_HEX, CIPHERTEXT_HEX, "f" * 32)
    assert try_extract_token(body) == PLAINTEXT_HEX


def test_extract_token_needs_three_matches():
    assert try_extract_token(challenge_page(KEY_HEX, IV_HEX)) is None
    assert try_extract_token("") is None


def test_extract_token_ignores_uppercase_and_unquoted_hex():
    body = challenge_page(KEY_HEX.upper(), IV_HEX, CIPHERTEXT_HEX) + KEY_HEX
    assert try_extract_token(body) is None


def test_extract_token_failed_decryption_is_none(monkeypatch):
    monkeypatch.setattr("evolve_monitor.challenge.decrypt_hex", lambda *args: "")
    assert try_extract_token(challenge_page(KEY_HEX, IV_HEX, CIPHERTEXT_HEX)) is None


def test_extract_token_from_bare_quoted_strings():
    body = '"%s" "%s" "%s"' % (KEY_HEX, IV_HEX, CIPHERTEXT_HEX)
    assert try_extract_token(body) == PLAINTEXT_HEX


def test_is_challenge_response():
    assert is_challenge_response(challenge_page(KEY_HEX, IV_HEX, CIPHERTEXT_HEX))
    assert is_challenge_response("<script>slowAES.decrypt()</script>")
    assert is_challenge_response('<script src="/aes.min.js"></script>')


def test_structured_payload_is_not_a_challenge():
    assert not is_challenge_response({"success": False, "content": None})
    assert not is_challenge_response({"success": True, "content": ["<!DOCTYPE html>"]})
    assert not is_challenge_response("Service temporarily unavailable")


def test_patch_appends_token_last():
    patched = patch_session_token("PHPSESSID=abc; theme=dark", "beef")
    assert patched == f"PHPSESSID=abc; theme=dark; {SESSION_TOKEN_COOKIE}=beef"


def test_patch_replaces_existing_token():
    cookies = f"{SESSION_TOKEN_COOKIE}=old; PHPSESSID=abc; theme=dark"
    assert patch_session_token(cookies, "new") == f"PHPSESSID=abc; theme=dark; {SESSION_TOKEN_COOKIE}=new"


def test_patch_is_idempotent():
    once = patch_session_token("PHPSESSID=abc", "beef")
    twice = patch_session_token(once, "beef")
    assert twice == once
    assert twice.count(f"{SESSION_TOKEN_COOKIE}=") == 1


def test_patch_matches_key_exactly():
    cookies = f"{SESSION_TOKEN_COOKIE}_backup=keep; PHPSESSID=abc"
    assert patch_session_token(cookies, "t") == f"{SESSION_TOKEN_COOKIE}_backup=keep; PHPSESSID=abc; {SESSION_TOKEN_COOKIE}=t"


def test_patch_empty_cookie_string():
    assert patch_session_token("", "t") == f"{SESSION_TOKEN_COOKIE}=t"
