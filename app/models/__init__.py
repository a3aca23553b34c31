"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from app.models.user import User
from app.models.listing import Category, Price, Listing
from app.models.message import Message
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Category",
    "Price",
    "Listing",
    "Message",
    "AuditLog",
]
