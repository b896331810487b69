"""Database models."""
from bot.models.base import Base, create_engine, create_session_factory, init_db
from bot.models.account_link import AccountLink
from bot.models.pending_authorisation import PendingAuthorisation

__all__ = [
    "Base",
    "AccountLink",
    "PendingAuthorisation",
    "create_engine",
    "create_session_factory",
    "init_db",
]
