import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from labinventory.db import get_session
from labinventory.deps import require_teacher
from labinventory.models import User
from labinventory.schemas import CurrentUser, Role, UserCreate, UserRead
from labinventory.security import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/usuarios", tags=["users"])


def _list_users(session: Session) -> list[UserRead]:
    users = session.exec(select(User).order_by(User.id)).all()
    return [UserRead(id=u.id, display_name=u.display_name, login=u.login, role=u.role) for u in users]


def _render(request: Request, session: Session, user: CurrentUser, error: str | None = None, status_code: int = 200):
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "usuarios.html",
        {"users": _list_users(session), "user": user, "roles": list(Role), "error": error},
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
def list_users(
    request: Request,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_teacher),
):
    return _render(request, session, user)


@router.post("", response_class=HTMLResponse)
def create_user(
    request: Request,
    display_name: str = Form(..., min_length=1),
    login: str = Form(..., min_length=1, max_length=50),
    password: str = Form(..., min_length=1),
    role: Role = Form(...),
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_teacher),
):
    data = UserCreate(display_name=display_name, login=login.strip(), password=password, role=role)

    # check first for a friendly message, the unique index still guards races
    existing = session.exec(select(User).where(User.login == data.login)).first()
    if existing:
        return _render(request, session, user, error="That login already exists", status_code=409)

    session.add(
        User(
            display_name=data.display_name,
            login=data.login,
            password_hash=hash_password(data.password),
            role=data.role.value,
        )
    )
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        return _render(request, session, user, error="That login already exists", status_code=409)

    logger.info("user %r (%s) created by %r", data.login, data.role.value, user.login)
    return RedirectResponse(url="/usuarios", status_code=303)


@router.post("/eliminar/{user_id}")
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_teacher),
):
    target = session.get(User, user_id)
    if target:
        session.delete(target)
        session.commit()
        logger.info("user %r deleted by %r", target.login, user.login)
    return RedirectResponse(url="/usuarios", status_code=303)
