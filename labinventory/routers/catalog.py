from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlmodel import Session, select

from labinventory.db import get_session
from labinventory.deps import require_teacher, require_user
from labinventory.error import abort
from labinventory.models import Category, Location
from labinventory.schemas import CurrentUser, parse_optional_id
from labinventory.services import registry

router = APIRouter(prefix="/categorias_ubicaciones", tags=["catalog"])

BACK = "/categorias_ubicaciones"


@router.get("", response_class=HTMLResponse)
def catalog_page(
    request: Request,
    categoria: Optional[str] = Query(None, description="Category id"),
    ubicacion: Optional[str] = Query(None, description="Location id"),
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_user),
):
    try:
        category_id = parse_optional_id(categoria)
        location_id = parse_optional_id(ubicacion)
    except ValueError:
        abort(400, "BAD_REQUEST", "categoria/ubicacion must be integer ids")

    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "categorias_ubicaciones.html",
        {
            "categories": session.exec(select(Category).order_by(Category.name)).all(),
            "locations": session.exec(select(Location).order_by(Location.name)).all(),
            "components": registry.list_components(
                session, category_id=category_id, location_id=location_id, order_by_name=True
            ),
            "categoria": categoria or "",
            "ubicacion": ubicacion or "",
            "user": user,
        },
    )


@router.post("/categorias")
def create_category(
    name: str = Form(..., min_length=1, max_length=100),
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_teacher),
):
    session.add(Category(name=name.strip()))
    session.commit()
    return RedirectResponse(url=BACK, status_code=303)


@router.post("/ubicaciones")
def create_location(
    name: str = Form(..., min_length=1, max_length=100),
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_teacher),
):
    session.add(Location(name=name.strip()))
    session.commit()
    return RedirectResponse(url=BACK, status_code=303)


@router.post("/categorias/eliminar/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_teacher),
):
    category = session.get(Category, category_id)
    if category:
        session.delete(category)
        session.commit()
    return RedirectResponse(url=BACK, status_code=303)


@router.post("/ubicaciones/eliminar/{location_id}")
def delete_location(
    location_id: int,
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_teacher),
):
    location = session.get(Location, location_id)
    if location:
        session.delete(location)
        session.commit()
    return RedirectResponse(url=BACK, status_code=303)
