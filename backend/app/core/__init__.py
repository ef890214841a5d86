# Marketplace Core Module
from .cache import KeyValueStore, check_cache_connection, create_redis_client, get_kv_store
from .config import get_settings, settings
from .database import Base, async_session_maker, check_db_connection, engine, get_db
from .errors import AppError, ErrorKind, register_exception_handlers
from .logging import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "check_db_connection",
    "KeyValueStore",
    "create_redis_client",
    "check_cache_connection",
    "get_kv_store",
    "AppError",
    "ErrorKind",
    "register_exception_handlers",
]
