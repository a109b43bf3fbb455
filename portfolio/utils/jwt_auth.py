"""
JWT token-based authentication for CMS access.
Tokens come from a Bearer Authorization header when one is sent, otherwise
from the httpOnly cms_token cookie.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Header, Request, Response

from portfolio.config import settings
from portfolio.utils.auth import verify_admin_password, is_admin, is_admin_email, PASSWORD_PRINCIPAL

ALGORITHM = "HS256"
COOKIE_NAME = "cms_token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: 401 if token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"}
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": "Token is not an access token"}
        )

    return payload


def _token_from_request(request: Request, authorization: Optional[str]) -> Optional[str]:
    # An explicit Authorization header wins over a possibly stale cookie
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return request.cookies.get(COOKIE_NAME)


def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (preferred over the cookie)")
) -> dict:
    """
    FastAPI dependency returning the decoded token of the caller.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = _token_from_request(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )
    return verify_token(token)


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (preferred over the cookie)")
) -> dict:
    """
    FastAPI dependency gating every CMS mutation.

    Raises:
        HTTPException: 401 without a valid token, 403 when the principal is
            not an administrator
    """
    principal = get_current_principal(request, authorization)
    if not is_admin(principal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "message": "Administrator access required"}
        )
    return principal


def authenticate_password(password: str) -> dict:
    """
    Check the admin password and return the claims for its token.

    Raises:
        HTTPException: 401 if password is invalid
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    if not verify_admin_password(password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Incorrect password"}
        )

    return {
        "role": "admin",
        "sub": PASSWORD_PRINCIPAL,
        "email": settings.ADMIN_EMAILS[0] if settings.ADMIN_EMAILS else None,
    }


def authenticate_email(email: Optional[str]) -> dict:
    """
    Claims for a Google-authenticated principal.

    Raises:
        HTTPException: 403 if the email is not on the allow-list
    """
    if not is_admin_email(email):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Access denied", "message": "This login is restricted to administrators only"}
        )

    return {"role": "admin", "sub": email.lower(), "email": email.lower()}


def set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_token_cookie(response: Response) -> None:
    response.delete_cookie(COOKIE_NAME)
