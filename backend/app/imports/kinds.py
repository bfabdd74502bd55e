import enum


class ImportKind(str, enum.Enum):
    assets = "assets"
    users = "users"
    assignments = "assignments"
