"""Database engine, sessions and models."""

from .db_connection import create_db_engine, create_session_factory, get_session, init_db

__all__ = ["create_db_engine", "create_session_factory", "get_session", "init_db"]
