"""Validate candidate records against the create schemas."""
from dataclasses import asdict

from pydantic import BaseModel, ValidationError

from app.imports.builders import AssetCandidate, AssignmentCandidate, Candidate, UserCandidate
from app.imports.errors import RecordValidationError
from app.schemas.records import AssetCreate, AssignmentCreate, UserCreate

ValidatedRecord = AssetCreate | UserCreate | AssignmentCreate

SCHEMAS: dict[type, type[BaseModel]] = {
    AssetCandidate: AssetCreate,
    UserCandidate: UserCreate,
    AssignmentCandidate: AssignmentCreate,
}


def describe(exc: ValidationError) -> str:
    """One line per failing field: ``"<field>: <reason>"`` joined by "; "."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "record"
        parts.append(f"{field}: {err['msg'].removeprefix('Value error, ')}")
    return "; ".join(parts)


def validate(candidate: Candidate) -> ValidatedRecord:
    """Return the validated record or raise RecordValidationError.

    None marks a missing value, so those keys are left out and the schema
    reports required fields as missing rather than as wrongly typed.
    """
    schema = SCHEMAS[type(candidate)]
    data = {key: value for key, value in asdict(candidate).items() if value is not None}
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise RecordValidationError(describe(exc)) from exc
