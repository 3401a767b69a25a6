import logging
from typing import Optional

from sqlmodel import Session, select

from labinventory.error import abort
from labinventory.models import Category, Component, Location, Movement
from labinventory.schemas import ComponentData, ComponentRow
from labinventory.storage import ObjectStore, public_id_from_url

logger = logging.getLogger(__name__)


def component_filters(
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    location_id: Optional[int] = None,
) -> list:
    """WHERE conditions for the optional listing filters; empty list means no filter."""
    conds = []
    if search:
        conds.append(Component.name.ilike(f"%{search}%"))
    if category_id is not None:
        conds.append(Component.category_id == category_id)
    if location_id is not None:
        conds.append(Component.location_id == location_id)
    return conds


def list_components(
    session: Session,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    location_id: Optional[int] = None,
    order_by_name: bool = False,
) -> list[ComponentRow]:
    stmt = (
        select(Component, Category.name, Location.name)
        .outerjoin(Category, Component.category_id == Category.id)
        .outerjoin(Location, Component.location_id == Location.id)
    )
    conds = component_filters(search, category_id, location_id)
    if conds:
        stmt = stmt.where(*conds)
    if order_by_name:
        stmt = stmt.order_by(Component.name.asc(), Component.id.asc())
    else:
        stmt = stmt.order_by(Component.id.asc())

    return [
        ComponentRow(
            id=c.id,
            name=c.name,
            description=c.description,
            quantity=c.quantity,
            status=c.status,
            image_url=c.image_url,
            category_name=category_name,
            location_name=location_name,
        )
        for c, category_name, location_name in session.exec(stmt).all()
    ]


def get_component(session: Session, component_id: int) -> Component:
    component = session.get(Component, component_id)
    if not component:
        abort(404, "NOT_FOUND", "Component not found")
    return component


def create_component(
    session: Session,
    store: ObjectStore,
    data: ComponentData,
    image: Optional[bytes] = None,
    folder: str = "inventario",
) -> Component:
    # upload first: a failed upload must leave no row behind
    image_url = store.upload(image, folder) if image else None

    component = Component(**data.model_dump(), image_url=image_url)
    session.add(component)
    session.commit()
    session.refresh(component)
    return component


def update_component(
    session: Session,
    store: ObjectStore,
    component_id: int,
    data: ComponentData,
    image: Optional[bytes] = None,
    folder: str = "inventario",
) -> Component:
    component = get_component(session, component_id)

    # the previous asset is left in the store
    if image:
        component.image_url = store.upload(image, folder)

    for field, value in data.model_dump().items():
        setattr(component, field, value)

    session.add(component)
    session.commit()
    session.refresh(component)
    return component


def delete_component(session: Session, store: ObjectStore, component_id: int) -> None:
    """Remove a component with its history and image.

    Movements go first, then the stored image, then the row itself, all inside
    one transaction: if the store call fails nothing is committed.
    """
    component = get_component(session, component_id)

    movements = session.exec(select(Movement).where(Movement.component_id == component_id)).all()
    for mv in movements:
        session.delete(mv)
    session.flush()

    public_id = public_id_from_url(component.image_url)
    if public_id:
        logger.info("deleting asset %s of component %s", public_id, component_id)
        store.delete(public_id)

    session.delete(component)
    session.commit()
    logger.info("component %s deleted with %d movements", component_id, len(movements))
