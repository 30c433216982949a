"""
Database connection implementations.

This package provides the connection contract, the shared base class and
the MySQL implementation used to manage the users table.
"""

from .config import ConnectionConfig, DatabaseConfigError

from .base import (
    ConnectionContract,
    DatabaseConnection,
    DatabaseType,
    UserRecord,
    USERS_TABLE,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseStateError
)

from .mysql import MySQLConnection, create_mysql_connection

# List what's available when someone imports from this package
__all__ = [
    'ConnectionConfig',
    'ConnectionContract',
    'DatabaseConnection',
    'DatabaseType',
    'UserRecord',
    'USERS_TABLE',
    'DatabaseConnectionError',
    'DatabaseQueryError',
    'DatabaseConfigError',
    'DatabaseStateError',
    'MySQLConnection',
    'create_mysql_connection'
]
