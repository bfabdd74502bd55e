"""Record builders: map a raw row onto a typed candidate record.

Each kind declares its column order as a tuple of FieldSlot entries. Builders
never raise; empty columns become the slot default (None unless stated) and
values that cannot be coerced are handed on for the validator to reject.
"""
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from app.imports.field_mapper import RawRow
from app.imports.kinds import ImportKind
from app.schemas.records import new_user_id

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d")


# ─── Coercions ───

def parse_date(value: str) -> date | str:
    """Parsed date, or the original text when no known format matches."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            pass
    return value


def parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_flag(value: str) -> bool:
    return value == "true"


# ─── Slot schema ───

@dataclass(frozen=True)
class FieldSlot:
    name: str
    default: Any = None
    coerce: Callable[[str], Any] | None = None

    def read(self, text: str) -> Any:
        if not text:
            return self.default
        return self.coerce(text) if self.coerce else text


ASSET_SLOTS = (
    FieldSlot("asset_tag"),
    FieldSlot("name"),
    FieldSlot("category", default="other"),
    FieldSlot("subcategory"),
    FieldSlot("serial_number"),
    FieldSlot("model"),
    FieldSlot("manufacturer"),
    FieldSlot("purchase_date", coerce=parse_date),
    FieldSlot("purchase_price"),
    FieldSlot("current_value"),
    FieldSlot("status", default="available"),
    FieldSlot("condition", default="good"),
    FieldSlot("building"),
    FieldSlot("floor"),
    FieldSlot("room"),
    FieldSlot("desk"),
    FieldSlot("description"),
    FieldSlot("notes"),
)

USER_SLOTS = (
    FieldSlot("name"),
    FieldSlot("email"),
    FieldSlot("department"),
    FieldSlot("job_title"),
    FieldSlot("employee_id"),
    FieldSlot("phone"),
    FieldSlot("role", default="user"),
    FieldSlot("is_active", default=False, coerce=parse_flag),
)

ASSIGNMENT_SLOTS = (
    FieldSlot("asset_id", default=0, coerce=parse_int),
    FieldSlot("user_id"),
    FieldSlot("purpose"),
    FieldSlot("expected_return_at", coerce=parse_date),
    FieldSlot("notes"),
)

SLOTS_BY_KIND: dict[ImportKind, tuple[FieldSlot, ...]] = {
    ImportKind.assets: ASSET_SLOTS,
    ImportKind.users: USER_SLOTS,
    ImportKind.assignments: ASSIGNMENT_SLOTS,
}


def map_slots(slots: tuple[FieldSlot, ...], row: RawRow) -> dict[str, Any]:
    return {slot.name: slot.read(row.get(pos)) for pos, slot in enumerate(slots)}


def header_line(kind: ImportKind, delimiter: str = ",") -> str:
    """Column names for ``kind`` in import order, for template downloads."""
    return delimiter.join(slot.name for slot in SLOTS_BY_KIND[kind])


# ─── Candidates ───

@dataclass
class AssetCandidate:
    asset_tag: str | None = None
    name: str | None = None
    category: str = "other"
    subcategory: str | None = None
    serial_number: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    purchase_date: date | str | None = None
    purchase_price: str | None = None
    current_value: str | None = None
    status: str = "available"
    condition: str = "good"
    building: str | None = None
    floor: str | None = None
    room: str | None = None
    desk: str | None = None
    description: str | None = None
    notes: str | None = None


@dataclass
class UserCandidate:
    id: str
    name: str | None = None
    email: str | None = None
    department: str | None = None
    job_title: str | None = None
    employee_id: str | None = None
    phone: str | None = None
    role: str = "user"
    is_active: bool = False


@dataclass
class AssignmentCandidate:
    asset_id: int = 0
    user_id: str | None = None
    purpose: str | None = None
    expected_return_at: date | str | None = None
    notes: str | None = None


Candidate = AssetCandidate | UserCandidate | AssignmentCandidate


# ─── Builders ───

def build_asset(row: RawRow) -> AssetCandidate:
    return AssetCandidate(**map_slots(ASSET_SLOTS, row))


def build_user(row: RawRow) -> UserCandidate:
    return UserCandidate(id=new_user_id(), **map_slots(USER_SLOTS, row))


def build_assignment(row: RawRow) -> AssignmentCandidate:
    return AssignmentCandidate(**map_slots(ASSIGNMENT_SLOTS, row))
