"""
Database boundary layer.

Dependencies: sqlalchemy, aiosqlite
System role: Chat persistence adapters
"""

from docqa.boundary.db.chat_store import ChatStore, SqlAlchemyChatStore
from docqa.boundary.db.connection import create_tables, get_async_engine, get_async_session_factory

__all__ = [
    "ChatStore",
    "SqlAlchemyChatStore",
    "create_tables",
    "get_async_engine",
    "get_async_session_factory",
]
