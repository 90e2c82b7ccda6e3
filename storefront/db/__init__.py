from .base import Base
from .database import Database
from .models import KeyValueEntry
from .utils import get_db, transaction_scope

__all__ = [
    "Base",
    "Database",
    "KeyValueEntry",
    "get_db",
    "transaction_scope",
]
