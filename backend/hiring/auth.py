from typing import Dict, Optional

from backend.hiring.config import AUTH_CONFIG


class AuthError(Exception):
    """Missing or unknown credentials."""


class TokenAuthenticator:
    """Maps bearer tokens to owner ids."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = dict(AUTH_CONFIG["tokens"] if tokens is None else tokens)

    def authenticate(self, token: Optional[str]) -> str:
        token = (token or "").strip()
        if not token:
            raise AuthError("Missing bearer token")
        owner_id = self.tokens.get(token)
        if not owner_id:
            raise AuthError("Unknown token")
        return owner_id
