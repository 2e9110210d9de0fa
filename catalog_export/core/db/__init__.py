"""
Database module initialization.
"""

from .postgres import (
    Base,
    init_engine,
    get_session,
    check_database_connection,
    close_engine,
    is_database_initialized,
    initialize_database,
    get_database_url
)

from .repository import (
    ProductRepository,
    build_exportable_query,
    to_catalog_record,
)

__all__ = [
    "Base",
    "init_engine",
    "get_session",
    "check_database_connection",
    "close_engine",
    "is_database_initialized",
    "initialize_database",
    "get_database_url",
    "ProductRepository",
    "build_exportable_query",
    "to_catalog_record",
]
