from app.models.user import User
from app.models.asset import Asset
from app.models.assignment import AssetAssignment
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Asset",
    "AssetAssignment",
    "AuditLog",
]
