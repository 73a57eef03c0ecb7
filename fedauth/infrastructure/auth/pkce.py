"""Proof Key for Code Exchange (RFC 7636) helpers."""

import hashlib
import secrets
from base64 import urlsafe_b64encode

CHALLENGE_METHOD = "S256"

# token_urlsafe(48) yields 64 characters, within the 43-128 bound of RFC 7636
_VERIFIER_BYTES = 48


def generate_code_verifier() -> str:
    """Create a fresh, single-use code verifier."""
    return secrets.token_urlsafe(_VERIFIER_BYTES)


def code_challenge(verifier: str) -> str:
    """S256 challenge: unpadded base64url of the verifier's SHA-256 digest."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
