"""
MySQL Database Connection Implementation

This module provides the concrete implementation of DatabaseConnection
for MySQL databases using the PyMySQL library.

Key Features:
- Real MySQL connections using PyMySQL
- Idempotent connect/disconnect
- Users table created on connect
- Connection test and server version lookup
"""

import pymysql
import pymysql.cursors
from typing import Optional, Tuple
import logging

from .base import (
    DatabaseConnection,
    DatabaseType,
    DatabaseConnectionError,
    USERS_TABLE,
)
from .config import ConnectionConfig

# Set up logging
logger = logging.getLogger(__name__)


class MySQLConnection(DatabaseConnection):
    """
    Concrete MySQL database connection implementation.

    Moves between two states, disconnected and connected. The handle is
    dropped on disconnect and a new one is opened on the next connect().
    """

    driver_error = pymysql.Error

    def __init__(self, config: ConnectionConfig, table_name: str = USERS_TABLE):
        """
        Initialize MySQL connection.

        Args:
            config: Connection settings
            table_name: Users table checked on connect
        """
        super().__init__(config)
        self._connection: Optional[pymysql.connections.Connection] = None
        self._mysql_version: Optional[str] = None
        self.table_name = table_name

    # -----------------------------------------------------------------
    # Connection Management Methods
    # -----------------------------------------------------------------

    def connect(self) -> bool:
        """
        Establish connection to MySQL database.

        Returns:
            bool: True if connected (or already connected)

        Raises:
            DatabaseConnectionError: If the driver cannot open a connection or
                the users table cannot be checked
        """
        if self.is_connected:
            logger.info("Connection is already active")
            return True

        conn_params = self.config.connect_params()
        try:
            logger.info(f"Connecting to MySQL: {self.config.endpoint}")
            self._connection = pymysql.connect(**conn_params)

            # Get MySQL version
            with self._connection.cursor(pymysql.cursors.DictCursor) as cursor:
                cursor.execute("SELECT VERSION() as version")
                result = cursor.fetchone()
                self._mysql_version = result.get('version') if result else "Unknown"

        except pymysql.Error as e:
            error_msg = f"MySQL connection failed: {str(e)}"
            logger.error(error_msg)
            self._drop_handle()
            raise DatabaseConnectionError(error_msg) from e
        except Exception as e:
            error_msg = f"Unexpected connection error: {str(e)}"
            logger.error(error_msg)
            self._drop_handle()
            raise DatabaseConnectionError(error_msg) from e

        logger.info(f"Successfully connected to MySQL (version: {self._mysql_version})")

        if not self.check(self.table_name):
            self._drop_handle()
            raise DatabaseConnectionError(f"Could not check table '{self.table_name}' after connecting")

        return True

    def disconnect(self) -> bool:
        """
        Close MySQL connection gracefully.

        Returns:
            bool: True if closed (or nothing to close), False if the driver
            failed to close the handle
        """
        if not self.is_connected:
            logger.info("No active connection to close")
            self._connection = None
            return True

        try:
            logger.info("Closing the database connection...")
            self._connection.close()
            logger.info("Connection closed successfully")
            return True

        except pymysql.Error as e:
            logger.error(f"Error closing the database connection: {str(e)}")
            return False

        finally:
            self._connection = None

    # -----------------------------------------------------------------
    # Connection Testing
    # -----------------------------------------------------------------

    def test_connection(self) -> Tuple[bool, str]:
        """
        Test MySQL connection with a simple query.

        Returns:
            Tuple of (success, message)
        """
        try:
            if not self.is_connected:
                return False, "Not connected to database"

            with self._connection.cursor(pymysql.cursors.DictCursor) as cursor:
                cursor.execute("SELECT 1 as test")
                result = cursor.fetchone()

            if result and result.get('test') == 1:
                return True, f"Connection successful (MySQL {self._mysql_version})"
            else:
                return False, "Connection test query failed"

        except pymysql.Error as e:
            return False, f"Connection test failed: {str(e)}"

    # -----------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------

    @property
    def db_type(self) -> DatabaseType:
        """Return MySQL database type."""
        return DatabaseType.MYSQL

    @property
    def mysql_version(self) -> Optional[str]:
        """Get MySQL version string."""
        return self._mysql_version

    # -----------------------------------------------------------------
    # Helper Methods (Private)
    # -----------------------------------------------------------------

    def _handle_is_open(self) -> bool:
        return bool(self._connection.open)

    def _drop_handle(self) -> None:
        """Close a half-opened handle and forget it."""
        if self._connection is not None:
            try:
                self._connection.close()
            except pymysql.Error as e:
                logger.warning(f"Error closing connection after failure: {str(e)}")
        self._connection = None

    def __str__(self) -> str:
        """User-friendly string representation."""
        return f"MySQL Connection: {self.config.user}@{self.config.endpoint}"


# Convenience function to create MySQL connection
def create_mysql_connection(config: ConnectionConfig) -> MySQLConnection:
    """
    Create and connect a MySQL connection in one step.

    Args:
        config: MySQL connection configuration

    Returns:
        Connected MySQLConnection instance
    """
    conn = MySQLConnection(config)
    conn.connect()
    return conn
