"""
Database subsystem.

Provides the async SQLAlchemy engine, session and transaction management,
and the ORM base classes and mixins used by the models.
"""

from src.core.database.base import (
    Base,
    IdMixin,
    IdType,
    SoftDeleteMixin,
    TimestampMixin,
)
from src.core.database.bootstrap import (
    initialize_database_subsystem,
    shutdown_database_subsystem,
)
from src.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    # ORM Base & Mixins
    "Base",
    "IdMixin",
    "IdType",
    "TimestampMixin",
    "SoftDeleteMixin",
    # Main service
    "DatabaseService",
    # Bootstrap
    "initialize_database_subsystem",
    "shutdown_database_subsystem",
    # Exceptions
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
