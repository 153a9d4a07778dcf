"""Database CRUD operations."""

from docqa.boundary.db.crud.base_crud import BaseCRUD
from docqa.boundary.db.crud.chat_crud import message_crud, search_query_crud, thread_crud

__all__ = ["BaseCRUD", "message_crud", "search_query_crud", "thread_crud"]
