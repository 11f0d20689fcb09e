"""
Unit tests for AuthService and the auth clients.

Run: pytest tests/unit/test_auth_service.py -v
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from models.auth import Credentials
from services.auth_service import AuthService
from exceptions import AuthenticationError, ExternalServiceError


def auth_response(user_id: str = "user-1", token: str = "token-abc"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email="chef@example.com"),
        session=SimpleNamespace(access_token=token, refresh_token="refresh-abc"),
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(email="chef@example.com", password="secret123")


class TestSignIn:
    """Tests for AuthService.sign_in()"""

    def test_returns_session(self, mock_auth, credentials):
        mock_auth.auth.sign_in_with_password.return_value = auth_response()
        service = AuthService()

        session = service.sign_in(credentials)

        assert session.user_id == "user-1"
        assert session.access_token == "token-abc"
        mock_auth.auth.sign_in_with_password.assert_called_once_with({
            "email": "chef@example.com",
            "password": "secret123",
        })

    def test_rejected_credentials(self, mock_auth, credentials):
        mock_auth.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        service = AuthService()

        with pytest.raises(AuthenticationError) as exc_info:
            service.sign_in(credentials)

        assert exc_info.value.status_code == 401

    def test_uses_fresh_client_per_call(self, mock_auth, credentials):
        mock_auth.auth.sign_in_with_password.return_value = auth_response()
        service = AuthService()

        service.sign_in(credentials)
        service.sign_in(credentials)

        assert mock_auth.factory.call_count == 2

    def test_store_client_keeps_service_key(self, mock_db, mock_auth, credentials):
        mock_auth.auth.sign_in_with_password.return_value = auth_response(token="user-jwt")

        AuthService().sign_in(credentials)

        assert mock_db.options.headers["Authorization"] == "Bearer service-role-key"
        mock_db.auth.sign_in_with_password.assert_not_called()


class TestSignUp:
    """Tests for AuthService.sign_up()"""

    def test_confirmation_pending_has_no_tokens(self, mock_auth, credentials):
        mock_auth.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="user-2", email="chef@example.com"),
            session=None,
        )
        service = AuthService()

        session = service.sign_up(credentials)

        assert session.user_id == "user-2"
        assert session.access_token is None

    def test_no_user_returned(self, mock_auth, credentials):
        mock_auth.auth.sign_up.return_value = SimpleNamespace(user=None, session=None)
        service = AuthService()

        with pytest.raises(AuthenticationError):
            service.sign_up(credentials)


class TestGetUserId:
    """Tests for AuthService.get_user_id()"""

    def test_valid_token(self, mock_auth):
        mock_auth.auth.get_user.return_value = auth_response(user_id="user-7")
        service = AuthService()

        assert service.get_user_id("token-abc") == "user-7"
        mock_auth.auth.get_user.assert_called_once_with("token-abc")

    @pytest.mark.parametrize("token", ["", None])
    def test_missing_token(self, mock_auth, token):
        service = AuthService()

        with pytest.raises(AuthenticationError):
            service.get_user_id(token)

        mock_auth.auth.get_user.assert_not_called()

    def test_expired_token(self, mock_auth):
        mock_auth.auth.get_user.side_effect = Exception("JWT expired")
        service = AuthService()

        with pytest.raises(AuthenticationError):
            service.get_user_id("expired")


class TestSignOut:
    """Tests for AuthService.sign_out()"""

    def test_revokes_callers_token(self, mock_auth):
        AuthService().sign_out("token-abc")

        mock_auth.auth.admin.sign_out.assert_called_once_with("token-abc")
        mock_auth.auth.sign_out.assert_not_called()

    def test_failure_is_raised(self, mock_auth):
        mock_auth.auth.admin.sign_out.side_effect = Exception("network down")

        with pytest.raises(ExternalServiceError) as exc_info:
            AuthService().sign_out("token-abc")

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "AUTH_ERROR"


class TestAuthClients:
    """Tests for the sessionless auth client factory"""

    def test_auth_client_keeps_no_session(self):
        from config.database import create_auth_client

        with patch("config.database.create_client", side_effect=lambda *a, **kw: MagicMock()) as create:
            first = create_auth_client()
            second = create_auth_client()

        assert first is not second
        options = create.call_args.kwargs["options"]
        assert options.persist_session is False
        assert options.auto_refresh_token is False
