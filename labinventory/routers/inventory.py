from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlmodel import Session, select

from labinventory.config import get_settings
from labinventory.db import get_session
from labinventory.deps import get_object_store, require_teacher, require_user
from labinventory.error import abort
from labinventory.models import Category, Location
from labinventory.schemas import ComponentData, CurrentUser, parse_optional_id
from labinventory.services import registry
from labinventory.services.export import XLSX_MEDIA_TYPE, inventory_workbook
from labinventory.storage import ObjectStore

router = APIRouter(tags=["inventory"])


def _id_or_400(value: Optional[str], name: str) -> Optional[int]:
    try:
        return parse_optional_id(value)
    except ValueError:
        abort(400, "BAD_REQUEST", f"{name} must be an integer id")


def _read_image(image: Optional[UploadFile]) -> Optional[bytes]:
    if image is None or not image.filename:
        return None
    return image.file.read() or None


def _catalog(session: Session) -> dict:
    return {
        "categories": session.exec(select(Category).order_by(Category.name)).all(),
        "locations": session.exec(select(Location).order_by(Location.name)).all(),
    }


def _component_data(
    name: str,
    description: Optional[str],
    quantity: int,
    category_id: Optional[str],
    location_id: Optional[str],
    status: Optional[str],
) -> ComponentData:
    return ComponentData(
        name=name.strip(),
        description=description,
        quantity=quantity,
        category_id=_id_or_400(category_id, "category_id"),
        location_id=_id_or_400(location_id, "location_id"),
        status=status,
    )


@router.get("/inventario", response_class=HTMLResponse)
def list_inventory(
    request: Request,
    busqueda: Optional[str] = Query(None, description="Case-insensitive part of the name"),
    tipo: Optional[str] = Query(None, description="Category id"),
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_user),
):
    components = registry.list_components(
        session,
        search=(busqueda or "").strip() or None,
        category_id=_id_or_400(tipo, "tipo"),
    )
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "inventario.html",
        {
            "components": components,
            "categories": session.exec(select(Category)).all(),
            "user": user,
            "busqueda": busqueda or "",
            "tipo": tipo or "",
        },
    )


@router.get("/inventario/export.xlsx")
def export_inventory(
    busqueda: Optional[str] = None,
    tipo: Optional[str] = None,
    session: Session = Depends(get_session),
    _user: CurrentUser = Depends(require_user),
):
    components = registry.list_components(
        session,
        search=(busqueda or "").strip() or None,
        category_id=_id_or_400(tipo, "tipo"),
    )
    return Response(
        content=inventory_workbook(components),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="inventory.xlsx"'},
    )


@router.get("/registro", response_class=HTMLResponse)
def new_component_form(
    request: Request,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_teacher),
):
    templates = request.app.state.templates
    return templates.TemplateResponse(request, "registro.html", {"user": user, **_catalog(session)})


@router.post("/agregar")
def create_component(
    name: str = Form(..., min_length=1, max_length=100),
    description: Optional[str] = Form(None),
    quantity: int = Form(0),
    category_id: Optional[str] = Form(None),
    location_id: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
    _user: CurrentUser = Depends(require_teacher),
):
    data = _component_data(name, description, quantity, category_id, location_id, status)
    registry.create_component(
        session, store, data, image=_read_image(image), folder=get_settings().upload_folder
    )
    return RedirectResponse(url="/inventario", status_code=303)


@router.get("/editar/{component_id}", response_class=HTMLResponse)
def edit_component_form(
    request: Request,
    component_id: int,
    session: Session = Depends(get_session),
    user: CurrentUser = Depends(require_teacher),
):
    component = registry.get_component(session, component_id)
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "editar.html",
        {"component": component, "user": user, **_catalog(session)},
    )


@router.post("/editar/{component_id}")
def update_component(
    component_id: int,
    name: str = Form(..., min_length=1, max_length=100),
    description: Optional[str] = Form(None),
    quantity: int = Form(0),
    category_id: Optional[str] = Form(None),
    location_id: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
    _user: CurrentUser = Depends(require_teacher),
):
    data = _component_data(name, description, quantity, category_id, location_id, status)
    registry.update_component(
        session, store, component_id, data, image=_read_image(image), folder=get_settings().upload_folder
    )
    return RedirectResponse(url="/inventario", status_code=303)


@router.api_route("/eliminar/{component_id}", methods=["GET", "POST"])
def delete_component(
    component_id: int,
    session: Session = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
    _user: CurrentUser = Depends(require_teacher),
):
    registry.delete_component(session, store, component_id)
    return RedirectResponse(url="/inventario", status_code=303)
