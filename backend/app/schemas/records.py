"""Pydantic create schemas for assets, users and assignments.

These are the rule sets a record must pass before it is written, whether it
comes from a direct-entry form or a bulk import row.
"""
import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.asset import CATEGORIES, CONDITIONS, STATUSES
from app.models.user import ROLES


def new_user_id() -> str:
    return f"import-{uuid.uuid4().hex}"


def _one_of(value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(f"'{value}' is not one of: {', '.join(allowed)}")
    return value


def _calendar_date(value):
    # Text must be an ISO date; pydantic would otherwise read "0" as a Unix timestamp.
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValueError(f"'{value}' is not a valid date") from None
    return value


# ─── Asset ───

class AssetCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    asset_tag: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    category: str = "other"
    subcategory: str | None = None
    serial_number: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    purchase_date: date | None = None
    purchase_price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    current_value: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    status: str = "available"
    condition: str = "good"
    building: str | None = None
    floor: str | None = None
    room: str | None = None
    desk: str | None = None
    description: str | None = None
    notes: str | None = None

    @field_validator("purchase_price", "current_value", mode="before")
    @classmethod
    def _strip_thousands(cls, value):
        if isinstance(value, str):
            return value.replace(",", "")
        return value

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _purchase_date(cls, value):
        return _calendar_date(value)

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        return _one_of(value, CATEGORIES)

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        return _one_of(value, STATUSES)

    @field_validator("condition")
    @classmethod
    def _known_condition(cls, value: str) -> str:
        return _one_of(value, CONDITIONS)


# ─── User ───

class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_user_id, min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    department: str | None = None
    job_title: str | None = None
    employee_id: str | None = None
    phone: str | None = Field(default=None, max_length=50)
    role: str = "user"
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str) -> str:
        return _one_of(value, ROLES)


# ─── Assignment ───

class AssignmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    asset_id: int
    user_id: str = Field(min_length=1, max_length=64)
    purpose: str | None = None
    expected_return_at: date | None = None
    notes: str | None = None

    @field_validator("expected_return_at", mode="before")
    @classmethod
    def _expected_return_at(cls, value):
        return _calendar_date(value)

    @field_validator("asset_id")
    @classmethod
    def _asset_id_present(cls, value: int) -> int:
        # 0 is the builder's marker for a missing or unparseable id
        if value <= 0:
            raise ValueError("Asset ID is required")
        return value
