"""
Auth service.

Email/password identity through Supabase Auth. The user id it yields
namespaces every document store call.

Auth never runs on the document store client: a sign-in rebinds the
client it runs on to the user's token.
"""

from typing import Optional
import structlog

from config import create_auth_client, get_auth_client
from models.auth import AuthSession, Credentials
from exceptions import AuthenticationError, ExternalServiceError

logger = structlog.get_logger(__name__)


class AuthService:
    """Sign-in, sign-up, sign-out and token verification."""

    def _to_session(self, response) -> AuthSession:
        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError()
        session = getattr(response, "session", None)
        return AuthSession(
            user_id=user.id,
            email=getattr(user, "email", None),
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
        )

    def sign_in(self, credentials: Credentials) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: Wrong credentials or auth service failure
        """
        try:
            response = create_auth_client().auth.sign_in_with_password({
                "email": credentials.email,
                "password": credentials.password,
            })
        except Exception as e:
            logger.warning("sign_in_failed", email=credentials.email, error=str(e))
            raise AuthenticationError("Sign-in failed")

        session = self._to_session(response)
        logger.info("user_signed_in", user_id=session.user_id)
        return session

    def sign_up(self, credentials: Credentials) -> AuthSession:
        """
        Create an account.

        The session tokens are empty when the project requires email
        confirmation first.

        Raises:
            AuthenticationError: Account could not be created
        """
        try:
            response = create_auth_client().auth.sign_up({
                "email": credentials.email,
                "password": credentials.password,
            })
        except Exception as e:
            logger.warning("sign_up_failed", email=credentials.email, error=str(e))
            raise AuthenticationError("Sign-up failed")

        session = self._to_session(response)
        logger.info("user_signed_up", user_id=session.user_id)
        return session

    def sign_out(self, access_token: str) -> None:
        """
        Revoke the sessions behind the caller's access token.

        Raises:
            ExternalServiceError: Supabase Auth refused or failed the revoke
        """
        try:
            get_auth_client().auth.admin.sign_out(access_token)
        except Exception as e:
            logger.error("sign_out_failed", error=str(e))
            raise ExternalServiceError("auth", f"Sign-out failed: {e}")

        logger.info("user_signed_out")

    def get_user_id(self, access_token: str) -> str:
        """
        Resolve an access token to its user id.

        Raises:
            AuthenticationError: Missing, expired or invalid token
        """
        if not access_token:
            raise AuthenticationError("Missing access token")

        try:
            response = get_auth_client().auth.get_user(access_token)
        except Exception as e:
            logger.warning("token_rejected", error=str(e))
            raise AuthenticationError("Invalid access token")

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Invalid access token")
        return user.id


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
