import logging

from fastapi import HTTPException
from sqlmodel import SQLModel, Session, create_engine, select

from labinventory.config import get_settings
from labinventory.error import NotAuthenticated
from labinventory.models import User
from labinventory.schemas import Role
from labinventory.security import hash_password

logger = logging.getLogger(__name__)


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(get_settings().database_url)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


def seed_admin() -> None:
    """Create the initial teacher account if it is configured and missing."""
    settings = get_settings()
    if not settings.admin_password:
        logger.warning("admin_password not set, skipping initial teacher account")
        return

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.login == settings.admin_login)).first()
        if existing:
            logger.info("initial teacher account %r already exists", settings.admin_login)
            return
        session.add(
            User(
                display_name="Administrator",
                login=settings.admin_login,
                password_hash=hash_password(settings.admin_password),
                role=Role.TEACHER.value,
            )
        )
        session.commit()
        logger.info("initial teacher account %r created", settings.admin_login)


def get_session():
    session = Session(engine)
    try:
        yield session
    except (HTTPException, NotAuthenticated):
        # business / auth errors carry no partial writes worth undoing
        raise
    except Exception as e:
        session.rollback()
        logger.warning("rollback: %s: %s", type(e).__name__, e)
        raise
    finally:
        session.close()
