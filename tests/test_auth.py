"""Unit tests for token authentication."""

from unittest.mock import Mock

import pytest

from app.adapters.identity.in_memory import InMemoryIdentityStore
from app.core.auth import Principal, TokenAuthenticator, hash_token, parse_token_header
from app.core.errors import AuthenticationAppError, StoreUnavailableAppError


class TestParseTokenHeader:
    """Test Authorization header parsing."""

    def test_parse_quoted_token(self) -> None:
        assert parse_token_header('Token token="abc123"') == ("abc123", {})

    def test_parse_bare_token(self) -> None:
        assert parse_token_header("Token abc123") == ("abc123", {})

    def test_parse_bearer_scheme(self) -> None:
        assert parse_token_header("Bearer abc123") == ("abc123", {})

    def test_parse_options_after_token(self) -> None:
        """Options may be separated by commas, semicolons or tabs."""
        result = parse_token_header('Token token="abc123", nonce="n1"; scope="read"\tx="y"')
        assert result == ("abc123", {"nonce": "n1", "scope": "read", "x": "y"})

    def test_token_value_may_contain_equals(self) -> None:
        assert parse_token_header('Token token="a=b=="') == ("a=b==", {})

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Basic dXNlcjpwYXNz",
            "token abc123",
            "Token",
            'Token token=""',
            "Token   ",
        ],
    )
    def test_unparseable_headers_return_none(self, header) -> None:
        assert parse_token_header(header) is None


class TestTokenAuthenticator:
    """Test identity resolution and failure modes."""

    @pytest.fixture
    def authenticator(self) -> TokenAuthenticator:
        return TokenAuthenticator(InMemoryIdentityStore(["abc123"]), realm="Application")

    def test_known_token_resolves_principal(self, authenticator: TokenAuthenticator) -> None:
        principal = authenticator.authenticate('Token token="abc123"')

        assert isinstance(principal, Principal)
        assert principal.token == "abc123"
        assert principal.resolved is True
        assert principal.record is not None
        assert principal.record.api_key == "abc123"

    def test_missing_header_fails_with_missing(self, authenticator: TokenAuthenticator) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticator.authenticate(None)

        assert exc_info.value.code == "missing_credentials"
        assert exc_info.value.message == "Bad credentials"
        assert exc_info.value.headers == {"WWW-Authenticate": 'Token realm="Application"'}

    def test_unparseable_header_fails_with_missing(self, authenticator: TokenAuthenticator) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticator.authenticate("Basic dXNlcjpwYXNz")

        assert exc_info.value.code == "missing_credentials"

    @pytest.mark.parametrize("token", ["nope", "ABC123", "abc1234", " abc123"])
    def test_unknown_tokens_fail_with_invalid_credential(
        self, authenticator: TokenAuthenticator, token: str
    ) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticator.authenticate(f'Token token="{token}"')

        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.message == "Bad credentials"

    def test_realm_quotes_are_stripped_from_challenge(self) -> None:
        authenticator = TokenAuthenticator(InMemoryIdentityStore([]), realm='My "Realm"')

        with pytest.raises(AuthenticationAppError) as exc_info:
            authenticator.authenticate(None)

        assert exc_info.value.headers == {"WWW-Authenticate": 'Token realm="My Realm"'}

    def test_lookup_is_exact_and_read_only(self) -> None:
        store = Mock()
        store.find_by_api_key.return_value = None
        authenticator = TokenAuthenticator(store)

        with pytest.raises(AuthenticationAppError):
            authenticator.authenticate('Token token="abc123"')

        store.find_by_api_key.assert_called_once_with("abc123")

    def test_store_outage_propagates(self) -> None:
        store = Mock()
        store.find_by_api_key.side_effect = StoreUnavailableAppError(
            code="store_unavailable",
            message="down",
        )
        authenticator = TokenAuthenticator(store)

        with pytest.raises(StoreUnavailableAppError):
            authenticator.authenticate('Token token="abc123"')

    def test_principal_repr_hides_token(self, authenticator: TokenAuthenticator) -> None:
        principal = authenticator.authenticate('Token token="abc123"')
        assert "abc123" not in repr(principal)


def test_hash_token_is_short_and_stable() -> None:
    assert hash_token("abc123") == hash_token("abc123")
    assert len(hash_token("abc123")) == 16
