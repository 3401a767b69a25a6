from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    display_name: str
    login: str = Field(index=True, unique=True)
    password_hash: str
    role: str = Field(index=True)  # teacher / student


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)


class Location(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)


class Component(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=100)
    description: Optional[str] = None
    quantity: int = Field(default=0)  # cached sum of movement deltas

    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    location_id: Optional[int] = Field(default=None, foreign_key="location.id")

    status: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class Movement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    component_id: int = Field(foreign_key="component.id", index=True)

    kind: str = Field(index=True)  # intake / return / outflow / loan
    quantity: int                  # always > 0, sign comes from kind

    actor: str = Field(index=True)
    notes: Optional[str] = None

    occurred_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
