from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

# PKCE (RFC 7636) helpers shared by /oauth/authorize (method validation) and
# /oauth/token (verifier check).
#
# Both S256 and plain are accepted; the signing provider's extension
# platform sends S256, plain is kept for older clients.

S256 = "S256"
PLAIN = "plain"
SUPPORTED_METHODS = frozenset({S256, PLAIN})


# random string of 43–128 chars from the unreserved set
def generate_code_verifier() -> str:
    # 32 bytes of random data gives 43 chars after base64url encoding,
    # which is the minimum length.
    random_bytes = secrets.token_bytes(32)
    return base64.urlsafe_b64encode(random_bytes).rstrip(b"=").decode("utf-8")


# S256: BASE64URL(SHA256(verifier)) without padding
def compute_code_challenge(code_verifier: str) -> str:
    sha256_digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(sha256_digest).rstrip(b"=").decode("utf-8")


def verify_code_challenge(
    code_verifier: str, expected_challenge: str, method: str = S256
) -> bool:
    """Check a verifier against the challenge committed to at /authorize.

    Comparison is constant-time over UTF-8 bytes, so the result does not
    leak how many leading characters matched.
    """
    if method == S256:
        actual = compute_code_challenge(code_verifier)
    elif method == PLAIN:
        actual = code_verifier
    else:
        return False
    return hmac.compare_digest(
        actual.encode("utf-8"), expected_challenge.encode("utf-8")
    )
