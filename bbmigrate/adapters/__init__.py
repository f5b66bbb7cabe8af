"""Adapters — forum API bindings.

Public re-exports for convenient access.
"""

from bbmigrate.adapters.base import ForumClient, ForumError
from bbmigrate.adapters.discourse import DiscourseClient
from bbmigrate.adapters.mock import MockForum

__all__ = [
    "DiscourseClient",
    "ForumClient",
    "ForumError",
    "MockForum",
]
