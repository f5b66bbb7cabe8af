"""
Domain models — Pydantic types for bbmigrate.

All models are re-exported here for convenient access:

    from bbmigrate.core.models import Post, Receipt, Settings, UserRecord
"""

from bbmigrate.core.models.forum import Post, Receipt, UserRecord
from bbmigrate.core.models.settings import ForumSettings, Settings

__all__ = [
    # settings.py
    "ForumSettings",
    # forum.py
    "Post",
    "Receipt",
    "Settings",
    "UserRecord",
]
