"""Identity claims embedded in OpenID Connect id tokens."""

from typing import Any

import jwt


def decode_id_token_claims(id_token: str) -> dict[str, Any]:
    """Decode an id_token payload without verifying its signature.

    The token was received directly from the token endpoint over TLS in
    exchange for our client secret, so the transport already authenticates it.

    Raises:
        jwt.InvalidTokenError: If the token is not a decodable JWT
    """
    return jwt.decode(id_token, options={"verify_signature": False})
