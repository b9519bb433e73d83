"""Authentication dependencies for resolving the calling tutor."""

import logging

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import decode_access_token
from backend.app.db.session import get_db
from backend.app.models.user import User

logger = logging.getLogger(__name__)


def _resolve_user(db: Session, authorization: str) -> User:
    # Expect Authorization: Bearer <token>
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _resolve_user(db, authorization)


def get_optional_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User | None:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if not authorization:
        return None
    return _resolve_user(db, authorization)


def ensure_tutor_access(user: User, tutor_id: int) -> None:
    """Reject callers that are not the tutor whose data is requested."""
    if user.role != "tutor" or user.id != tutor_id:
        logger.warning("Revenue access refused: user %s requested tutor %s", user.id, tutor_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès non autorisé")
