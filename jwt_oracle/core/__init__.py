# jwt-oracle Core Module
from .config import get_settings, settings
from .database import Base, check_db_connection, get_engine, get_session_maker
from .logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "Base",
    "get_engine",
    "get_session_maker",
    "check_db_connection",
]
