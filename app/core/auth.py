# app/core/auth.py
import logging
import uuid
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.schemas.cart import CartOwner

settings = get_settings()
log = logging.getLogger(__name__)

# auto_error=False: a request without a bearer token is a guest, not a 401
bearer_scheme = HTTPBearer(auto_error=False)

MAX_SESSION_ID_LENGTH = 128


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of an HS256 access token.

    The audience claim is not checked; tokens are issued by the login
    service in front of this API.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def token_identity(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    """Return (user id, email) from verified claims, 401 if unusable."""
    sub, email = claims.get("sub"), claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(str(sub)), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def provision_user(session: Session, user_id: uuid.UUID, email: str) -> User:
    """
    Load the user for a verified token, creating a plain customer profile
    the first time the id is seen. Admins are promoted out of band.
    """
    user = session.get(User, user_id)
    if user is not None:
        return user

    user = User(id=user_id, email=email, name=email.split("@", 1)[0], role="user")
    session.add(user)
    session.commit()
    session.refresh(user)
    log.info("Provisioned user %s", user_id)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """The authenticated user, or None for guests."""
    if credentials is None:
        return None

    user_id, email = token_identity(decode_access_token(credentials.credentials))
    return provision_user(session, user_id, email)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def get_cart_owner(
    user: User | None = Depends(get_current_user),
    x_session_id: str | None = Header(default=None),
) -> CartOwner:
    """
    Resolve who owns the cart for this request.

    - Authenticated users own their cart by user id (the session header
      is ignored).
    - Guests must send `X-Session-Id`; the opaque token keys their cart.

    Raises:
        HTTPException(400): if neither a user nor a session token is present.
    """
    if user is not None:
        return CartOwner(user_id=user.id)

    session_id = (x_session_id or "").strip()
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session token required for guest carts",
        )
    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session token too long",
        )
    return CartOwner(session_id=session_id)
