"""
Bearer token verification and Appwrite account lookup.
"""
import jwt
from typing import Optional
from fastapi import HTTPException, status
from appwrite.client import Client
from appwrite.services.users import Users
from appwrite.exception import AppwriteException

from app.core import config
from app.utils import get_logger


log = get_logger(__name__)


class AppwriteClient:
    """Singleton Appwrite client for server-side operations."""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create Appwrite client instance."""
        if cls._instance is None:
            cls._instance = Client()
            cls._instance.set_endpoint(config.APPWRITE_ENDPOINT)
            cls._instance.set_project(config.APPWRITE_PROJECT_ID)
            cls._instance.set_key(config.APPWRITE_API_KEY)
        return cls._instance


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt_token(token: str, secret: Optional[str] = None) -> dict:
    """
    Decode a bearer token and return its payload.

    When a secret is configured (JWT_SECRET) the HS256 signature is verified;
    otherwise only expiry is checked and the account is confirmed against
    Appwrite on first sight.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    secret = secret if secret is not None else config.JWT_SECRET
    try:
        if secret:
            return jwt.decode(token, secret, algorithms=["HS256"])
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True}
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        log.info("Rejected bearer token: %s", e)
        raise _unauthorized(f"Invalid token: {str(e)}")


async def get_appwrite_user(user_id: str) -> dict:
    """
    Fetch account details (email, name) from Appwrite.

    Raises:
        HTTPException: 401 if user not found or API error
    """
    try:
        users = Users(AppwriteClient.get_client())
        return users.get(user_id)
    except AppwriteException as e:
        raise _unauthorized(f"Failed to verify user: {str(e)}")
