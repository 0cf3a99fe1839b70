from __future__ import annotations

from extension_auth.services import pkce_service

# RFC 7636 Appendix B test vector
RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_compute_code_challenge_matches_rfc_vector() -> None:
    assert pkce_service.compute_code_challenge(RFC_VERIFIER) == RFC_CHALLENGE


def test_generated_verifier_is_url_safe_and_long_enough() -> None:
    verifier = pkce_service.generate_code_verifier()
    assert len(verifier) >= 43
    assert "=" not in verifier
    assert "+" not in verifier and "/" not in verifier


def test_verify_s256() -> None:
    assert pkce_service.verify_code_challenge(RFC_VERIFIER, RFC_CHALLENGE, "S256")
    assert not pkce_service.verify_code_challenge("wrong", RFC_CHALLENGE, "S256")


def test_verify_defaults_to_s256() -> None:
    assert pkce_service.verify_code_challenge(RFC_VERIFIER, RFC_CHALLENGE)


def test_verify_plain() -> None:
    assert pkce_service.verify_code_challenge("abc", "abc", "plain")
    assert not pkce_service.verify_code_challenge("abc", "abd", "plain")


def test_verify_unknown_method_fails() -> None:
    assert not pkce_service.verify_code_challenge(RFC_VERIFIER, RFC_CHALLENGE, "S512")


def test_verify_non_ascii_does_not_raise() -> None:
    assert not pkce_service.verify_code_challenge("é", "e", "plain")
