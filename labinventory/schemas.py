from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime


class Role(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class MovementKind(str, Enum):
    INTAKE = "intake"
    RETURN = "return"
    OUTFLOW = "outflow"
    LOAN = "loan"


class CurrentUser(BaseModel):
    """Authenticated identity handed to every protected handler."""

    id: int
    display_name: str
    login: str
    role: Role

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER


class UserCreate(BaseModel):
    display_name: str = Field(..., min_length=1)
    login: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    role: Role


class UserRead(BaseModel):
    id: int
    display_name: str
    login: str
    role: str


class ComponentData(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    quantity: int = 0
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    status: Optional[str] = None


class ComponentRow(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    quantity: int
    status: Optional[str] = None
    image_url: Optional[str] = None
    category_name: Optional[str] = None
    location_name: Optional[str] = None


class MovementCreate(BaseModel):
    component_id: int
    kind: MovementKind
    quantity: int
    actor: str = Field(..., min_length=1)
    notes: Optional[str] = None


class MovementRow(BaseModel):
    id: int
    component_id: int
    component_name: str
    kind: str
    quantity: int
    delta: int
    actor: str
    notes: Optional[str] = None
    occurred_at: datetime


def parse_optional_id(value: Optional[str]) -> Optional[int]:
    """HTML selects send "" for "none"; anything else must be an integer id."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return int(value)
