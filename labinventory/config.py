from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Lab Inventory"
    database_url: str = "sqlite:///./inventory.db"

    # session token
    secret_key: str
    access_token_expire_minutes: int = 120
    session_cookie: str = "inventory_session"
    cookie_secure: bool = False

    log_level: str = "INFO"
    log_json: bool = False

    # ledger
    allow_negative_stock: bool = True

    # object store
    upload_folder: str = "inventario"
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    # seeded on startup when admin_password is set
    admin_login: str = "admin"
    admin_password: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
