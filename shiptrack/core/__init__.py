"""Core application modules."""
from shiptrack.core.config import settings, get_settings
from shiptrack.core.database import Base, get_db, close_db
from shiptrack.core.security import (
    OwnerScope,
    create_access_token,
    get_current_user,
    get_current_user_id,
    get_owner_scope,
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "close_db",
    "OwnerScope",
    "create_access_token",
    "get_current_user",
    "get_current_user_id",
    "get_owner_scope",
]
