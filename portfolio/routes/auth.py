"""
Admin sign-in routes.
Password logins are checked against ADMIN_PASSWORD_HASH; Google logins
must carry a verified email on the ADMIN_EMAILS allow-list.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import logging

from portfolio.config import settings
from portfolio.schemas import LoginRequest, GoogleLoginRequest, TokenResponse, PrincipalResponse
from portfolio.services.google_auth import GoogleAuthError, verify_google_id_token, verified_email
from portfolio.utils.auth import is_admin
from portfolio.utils.jwt_auth import (
    authenticate_password,
    authenticate_email,
    create_access_token,
    get_current_principal,
    set_token_cookie,
    clear_token_cookie,
)
from portfolio.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(response: Response, claims: dict) -> TokenResponse:
    token = create_access_token(claims)
    set_token_cookie(response, token)
    return TokenResponse(
        access_token=token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        email=claims.get("email"),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Exchange the admin password for an access token.

    Raises:
        HTTPException: 401 on a wrong password, 503 if no password is configured
    """
    try:
        claims = authenticate_password(credentials.password)
    except ValueError as e:
        logger.error(f"Password login unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Password login not configured", "detail": str(e)}
        )

    logger.info("Admin password login successful")
    return _issue_token(response, claims)


@router.post("/google", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def google_login(request: Request, response: Response, body: GoogleLoginRequest):
    """
    Exchange a Firebase ID token from Google sign-in for an access token.

    Raises:
        HTTPException: 401 if the ID token is invalid, 403 if the account is
            not an administrator
    """
    try:
        claims = verify_google_id_token(body.id_token)
    except GoogleAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid ID token", "detail": str(e)}
        )

    email = verified_email(claims)
    token_claims = authenticate_email(email)

    logger.info(f"Admin login successful: {email}")
    return _issue_token(response, token_claims)


@router.post("/logout")
async def logout(response: Response):
    clear_token_cookie(response)
    return {"message": "Signed out"}


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: dict = Depends(get_current_principal)):
    return PrincipalResponse(email=principal.get("email"), is_admin=is_admin(principal))
