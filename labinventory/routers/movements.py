from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlmodel import Session, select

from labinventory.config import get_settings
from labinventory.db import get_session
from labinventory.deps import require_teacher, require_user
from labinventory.models import Component
from labinventory.schemas import CurrentUser, MovementCreate, MovementKind
from labinventory.services.export import XLSX_MEDIA_TYPE, history_workbook
from labinventory.services.ledger import list_movements, record_movement

router = APIRouter(prefix="/historial", tags=["movements"])


def _render_history(request: Request, session: Session, user: CurrentUser, persona: str = ""):
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "historial.html",
        {
            "movements": list_movements(session, actor=persona or None),
            "components": session.exec(select(Component).order_by(Component.name)).all(),
            "kinds": list(MovementKind),
            "persona": persona,
            "user": user,
        },
    )


@router.get("", response_class=HTMLResponse)
def history(
    request: Request,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_user),
):
    return _render_history(request, session, user)


@router.get("/buscar", response_class=HTMLResponse)
def search_history(
    request: Request,
    persona: str = Query("", description="Case-insensitive part of the person's name"),
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_user),
):
    return _render_history(request, session, user, persona=persona.strip())


@router.get("/export.xlsx")
def export_history(
    persona: Optional[str] = None,
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_user),
):
    return Response(
        content=history_workbook(list_movements(session, actor=persona)),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="history.xlsx"'},
    )


@router.post("")
def create_movement(
    component_id: int = Form(...),
    kind: MovementKind = Form(...),
    quantity: int = Form(...),
    actor: str = Form(..., min_length=1),
    notes: Optional[str] = Form(None),
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_teacher),
):
    data = MovementCreate(
        component_id=component_id,
        kind=kind,
        quantity=quantity,
        actor=actor,
        notes=notes,
    )
    record_movement(session, data, allow_negative=get_settings().allow_negative_stock)
    return RedirectResponse(url="/historial", status_code=303)
