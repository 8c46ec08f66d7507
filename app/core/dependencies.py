from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core import config
from app.core.auth_utils import decode_token
from app.core.errors import OwnershipMismatch
from app.db.session import SessionLocal
from app.models.user import User
from app.services.image_resolver import ImageResolver
from app.services.path_guard import PathSecurityGuard

security = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_media_root() -> str:
    return config.MEDIA_ROOT


def get_image_resolver(media_root: str = Depends(get_media_root)) -> ImageResolver:
    return ImageResolver(PathSecurityGuard(media_root), config.DEFAULT_IMAGE_FILENAME)


def _token_from(credentials: Optional[HTTPAuthorizationCredentials], token: Optional[str]):
    # <img> tags cannot send headers, so ?token= is accepted as well
    if credentials is not None:
        return credentials.credentials
    return token


def get_current_user(
    token: Optional[str] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Authenticated caller for seller write routes (401/404 on failure)."""
    raw = _token_from(credentials, token)
    if not raw:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_token(raw)

    user = db.query(User).filter(User.email == payload["sub"]).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_image_viewer(
    token: Optional[str] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """
    Authenticated caller for image reads.

    Any auth failure ends on the placeholder like every other image miss.
    """
    raw = _token_from(credentials, token)
    if not raw:
        raise OwnershipMismatch("Unauthenticated reservation image request")

    try:
        payload = decode_token(raw)
    except HTTPException:
        raise OwnershipMismatch("Invalid token on reservation image request")

    user = db.query(User).filter(User.email == payload["sub"]).first()
    if not user:
        raise OwnershipMismatch(f"Unknown user {payload['sub']!r} on reservation image request")
    return user
