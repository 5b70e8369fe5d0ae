# Models package init
"""
Importing this package registers every model with Base.metadata, so string
relationship targets ("User", "Review") resolve and Alembic/create_all see
all tables.
"""

from storefinder.models.user import Heart, User
from storefinder.models.store import Store, StoreTag
from storefinder.models.review import Review

__all__ = ["Heart", "Review", "Store", "StoreTag", "User"]
