import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlmodel import Session, select

from labinventory.config import get_settings
from labinventory.db import get_session
from labinventory.deps import require_user
from labinventory.models import User
from labinventory.schemas import CurrentUser
from labinventory.security import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    login: str = Form(...),
    password: str = Form(...),
    session: Session = Depends(get_session),
):
    user = session.exec(select(User).where(User.login == login.strip())).first()
    if (not user) or (not verify_password(password, user.password_hash)):
        templates = request.app.state.templates
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": "Wrong login or password"},
            status_code=401,
        )

    settings = get_settings()
    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(
        settings.session_cookie,
        create_access_token(user.login),
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    logger.info("user %r logged in", user.login)
    return response


@router.get("/logout")
def logout():
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(get_settings().session_cookie)
    return response


@router.get("/", response_class=HTMLResponse)
def home(request: Request, user: CurrentUser = Depends(require_user)):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, "menu.html", {"user": user})
