import logging
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from labinventory.error import abort
from labinventory.models import Component, Movement
from labinventory.schemas import MovementCreate, MovementKind, MovementRow

logger = logging.getLogger(__name__)

_SIGN = {
    MovementKind.INTAKE: 1,
    MovementKind.RETURN: 1,
    MovementKind.OUTFLOW: -1,
    MovementKind.LOAN: -1,
}


def signed_delta(kind: str, quantity: int) -> int:
    """Stock change a movement causes; unknown kinds change nothing."""
    try:
        sign = _SIGN[MovementKind(kind)]
    except ValueError:
        return 0
    return sign * quantity


def calc_signed_delta_and_new_qty(
    kind: MovementKind, quantity: int, old_qty: int, *, allow_negative: bool = True
) -> tuple[int, int]:
    if quantity <= 0:
        abort(400, "INVALID_QUANTITY", "Movement quantity must be > 0")

    delta = signed_delta(kind, quantity)
    new_qty = old_qty + delta

    if new_qty < 0 and not allow_negative:
        abort(400, "INSUFFICIENT_STOCK", f"Not enough stock: have {old_qty}, requested {quantity}")

    return delta, new_qty


def record_movement(session: Session, data: MovementCreate, *, allow_negative: bool = True) -> Movement:
    """Append a movement and apply it to the component's cached quantity in one transaction."""
    component = session.exec(
        select(Component).where(Component.id == data.component_id).with_for_update()
    ).first()
    if not component:
        abort(404, "NOT_FOUND", "Component not found")

    old_qty = component.quantity
    delta, new_qty = calc_signed_delta_and_new_qty(
        data.kind, data.quantity, old_qty, allow_negative=allow_negative
    )
    component.quantity = new_qty

    notes = (data.notes or "").strip() or None
    mv = Movement(
        component_id=component.id,
        kind=data.kind.value,
        quantity=data.quantity,
        actor=data.actor.strip(),
        notes=notes,
    )

    session.add(component)
    session.add(mv)
    session.commit()
    session.refresh(mv)
    logger.info(
        "movement %s on component %s: %s %+d (%s -> %s)",
        mv.id, component.id, mv.kind, delta, old_qty, new_qty,
    )
    return mv


def ledger_balance(session: Session, component_id: int) -> int:
    """Recompute a component's stock from its movements, ignoring the cached column."""
    rows = session.exec(
        select(Movement.kind, func.sum(Movement.quantity))
        .where(Movement.component_id == component_id)
        .group_by(Movement.kind)
    ).all()
    return sum(signed_delta(kind, total or 0) for kind, total in rows)


def list_movements(session: Session, actor: Optional[str] = None) -> list[MovementRow]:
    stmt = select(Movement, Component.name).join(Component, Movement.component_id == Component.id)

    if actor is not None:
        actor = actor.strip()
        if actor:
            stmt = stmt.where(Movement.actor.ilike(f"%{actor}%"))

    stmt = stmt.order_by(Movement.occurred_at.desc(), Movement.id.desc())

    return [
        MovementRow(
            id=mv.id,
            component_id=mv.component_id,
            component_name=name,
            kind=mv.kind,
            quantity=mv.quantity,
            delta=signed_delta(mv.kind, mv.quantity),
            actor=mv.actor,
            notes=mv.notes,
            occurred_at=mv.occurred_at,
        )
        for mv, name in session.exec(stmt).all()
    ]
