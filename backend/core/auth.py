"""
Firebase Authentication Module for the Degree Planner Backend

The identity provider issues Firebase ID tokens; the token's uid is the
user id that keys the stored transcript and plan.
"""

import os
from typing import Optional
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth

from .config import initialize_firebase


# Security scheme for Bearer token
security = HTTPBearer()

# Optional email domain restriction; empty allows any verified account
ALLOWED_EMAIL_DOMAIN = os.getenv("ALLOWED_EMAIL_DOMAIN", "")


@dataclass
class AuthenticatedUser:
    """Represents an authenticated user from Firebase."""
    uid: str
    email: Optional[str]
    email_verified: bool
    display_name: Optional[str] = None


def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token.

    Args:
        token: The Firebase ID token to verify

    Returns:
        Decoded token claims

    Raises:
        HTTPException: If token is invalid or expired
    """
    initialize_firebase()
    try:
        return auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except auth.RevokedIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


def validate_email_domain(email: Optional[str], domain: Optional[str] = None) -> bool:
    """
    Validate that the email belongs to the allowed domain.

    With no domain configured every well-formed address is accepted.
    """
    domain = ALLOWED_EMAIL_DOMAIN if domain is None else domain

    if not email:
        return not domain

    email_lower = email.lower()
    if "@" not in email_lower or email_lower.startswith("@"):
        return False

    if not domain:
        return True
    return email_lower.endswith(f"@{domain.lower()}")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
    """
    FastAPI dependency to get the current authenticated user.

    Usage:
        @app.get("/api/state")
        async def state(user: AuthenticatedUser = Depends(get_current_user)):
            return {"uid": user.uid}
    """
    decoded_token = verify_firebase_token(credentials.credentials)
    email = decoded_token.get("email")

    if not validate_email_domain(email):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access restricted to @{ALLOWED_EMAIL_DOMAIN} email addresses"
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=email,
        email_verified=decoded_token.get("email_verified", False),
        display_name=decoded_token.get("name")
    )
