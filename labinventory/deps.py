from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose.exceptions import JOSEError
from sqlmodel import Session, select

from labinventory.config import get_settings
from labinventory.db import get_session
from labinventory.error import NotAuthenticated, forbidden
from labinventory.models import User
from labinventory.schemas import CurrentUser
from labinventory.security import decode_token
from labinventory.storage import CloudinaryStore, ObjectStore

# auto_error=False: a missing header falls through to the cookie, then to the login redirect
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)


def require_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> CurrentUser:
    token = request.cookies.get(get_settings().session_cookie) or bearer
    if not token:
        raise NotAuthenticated("NOT_AUTHENTICATED")

    try:
        login = decode_token(token)
    except (JOSEError, ValueError):
        raise NotAuthenticated("INVALID_TOKEN")

    # token is valid but the account has since been deleted
    user = session.exec(select(User).where(User.login == login)).first()
    if not user:
        raise NotAuthenticated("USER_NOT_FOUND")

    return CurrentUser(
        id=user.id,
        display_name=user.display_name,
        login=user.login,
        role=user.role,
    )


def require_teacher(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    if not user.is_teacher:
        raise forbidden()
    return user


def get_object_store() -> ObjectStore:
    return CloudinaryStore.from_settings(get_settings())
