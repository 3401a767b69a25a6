import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from labinventory import db
from labinventory.config import get_settings
from labinventory.error import NotAuthenticated, StorageError
from labinventory.log import setup_logging
from labinventory.routers import auth, catalog, inventory, movements, users

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.create_db_and_tables()
    db.seed_admin()
    yield
    logger.info("shutting down")


app = FastAPI(title=get_settings().app_name, lifespan=lifespan)
app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(inventory.router)
app.include_router(catalog.router)
app.include_router(movements.router)


def jsonable_errors(errors) -> list:
    # input/ctx can hold uploads or exception instances
    return [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in errors]


@app.get("/health")
def health():
    return {"ok": True}


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    logger.debug("redirecting %s to login: %s", request.url.path, exc.reason)
    response = RedirectResponse(url="/login", status_code=303)
    if exc.reason != "NOT_AUTHENTICATED":
        response.delete_cookie(get_settings().session_cookie)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"code": "VALIDATION_ERROR", "message": "Invalid request", "errors": jsonable_errors(exc.errors())},
    )


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"code": "VALIDATION_ERROR", "message": "Invalid request", "errors": jsonable_errors(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"code": "DB_ERROR", "message": "Server error"})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.exception("object store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"code": "STORAGE_ERROR", "message": "Server error"})
