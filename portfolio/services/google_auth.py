"""
Google sign-in verification through Firebase Authentication ID tokens.
"""
from typing import Optional, Dict, Any
import logging

import firebase_admin
from firebase_admin import auth as firebase_auth

from portfolio.config import settings

logger = logging.getLogger(__name__)


class GoogleAuthError(Exception):
    """Raised when an ID token cannot be verified."""


def _get_firebase_app() -> "firebase_admin.App":
    try:
        return firebase_admin.get_app()
    except ValueError:
        # Token verification only needs the project id, no service account
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        app = firebase_admin.initialize_app(options=options)
        logger.info("Firebase app initialized")
        return app


def verify_google_id_token(id_token: str) -> Dict[str, Any]:
    """
    Verify a Firebase ID token from a Google sign-in.

    Returns:
        dict: Decoded claims (email, email_verified, uid, ...)

    Raises:
        GoogleAuthError: If the token is invalid, expired or revoked
    """
    if not settings.FIREBASE_PROJECT_ID:
        raise GoogleAuthError("FIREBASE_PROJECT_ID not configured")

    try:
        return firebase_auth.verify_id_token(id_token, app=_get_firebase_app())
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        logger.warning(f"Firebase token verification failed: {e}")
        raise GoogleAuthError(str(e)) from e


def verified_email(claims: Dict[str, Any]) -> Optional[str]:
    """Email from decoded claims, only when Google has verified it."""
    email = claims.get("email")
    if not email or not claims.get("email_verified", False):
        return None
    return email
