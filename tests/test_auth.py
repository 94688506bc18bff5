"""Tests for bearer token authentication."""

import pytest

from backend.hiring.auth import AuthError, TokenAuthenticator


class TestTokenAuthenticator:
    def test_known_token(self):
        assert TokenAuthenticator({"t1": "owner-1"}).authenticate(" t1 ") == "owner-1"

    @pytest.mark.parametrize("token", [None, "", "   ", "t2"])
    def test_rejected(self, token):
        with pytest.raises(AuthError):
            TokenAuthenticator({"t1": "owner-1"}).authenticate(token)
