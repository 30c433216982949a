"""
Base Database Connection Interface

This module defines the contract every database connector must honour and
the shared behaviour built on top of it. It covers:

1. The connection contract (connect, disconnect, check, select, insert)
2. Shared connection state and the "am I connected?" guard
3. Default select/insert/check bodies for the fixed users table
4. Consistent error classes and error logging across backends
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
from enum import Enum
import logging

from .config import ConnectionConfig, DatabaseConfigError

logger = logging.getLogger(__name__)


USERS_TABLE = "usuarios"

CREATE_USERS_TABLE_SQL = (
    "CREATE TABLE IF NOT EXISTS {table} ("
    "id INT AUTO_INCREMENT PRIMARY KEY, "
    "nome VARCHAR(100) NOT NULL, "
    "email VARCHAR(100) NOT NULL UNIQUE, "
    "data_cadastro TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
    ")"
)

SELECT_USERS_SQL = "SELECT id, nome, email FROM {table}"

INSERT_USER_SQL = "INSERT INTO {table} (nome, email) VALUES (%s, %s)"


class DatabaseType(Enum):
    """Supported database types."""
    MYSQL = "mysql"


@dataclass
class UserRecord:
    """
    One row of the users table.

    Attributes:
        id: Auto-increment primary key
        name: Value of the ``nome`` column
        email: Value of the ``email`` column (unique)
    """
    id: int
    name: str
    email: str

    @classmethod
    def from_row(cls, row: Any, columns: Optional[List[str]] = None) -> "UserRecord":
        """
        Build a record from a driver row.

        Dict cursors hand back ``{"id": .., "nome": .., "email": ..}``; plain
        cursors hand back tuples, which are zipped with the cursor columns.
        """
        if not isinstance(row, dict):
            row = dict(zip(columns or ["id", "nome", "email"], row))
        return cls(id=int(row["id"]), name=row["nome"], email=row["email"])

    def __str__(self) -> str:
        return f"ID: {self.id:<5d} | Nome: {self.name:<20s} | Email: {self.email}"


class ConnectionContract(ABC):
    """
    Contract for a single database connection.

    Implementations own exactly one connection handle. Query-style operations
    report failure through their boolean result; only connection setup and
    handle access raise.
    """

    @abstractmethod
    def connect(self) -> bool:
        """
        Open the connection and make sure the users table exists.

        Returns:
            bool: True once connected (also when already connected)

        Raises:
            DatabaseConnectionError: If the connection cannot be established
        """

    @abstractmethod
    def disconnect(self) -> bool:
        """
        Close the connection.

        Idempotent: returns True when there is nothing to close, False when
        the driver fails to close the handle.
        """

    @abstractmethod
    def check(self, table_name: str = USERS_TABLE) -> bool:
        """Create the users table if it does not exist yet."""

    @abstractmethod
    def select(self, table_name: str = USERS_TABLE) -> bool:
        """Print every row of the users table."""

    @abstractmethod
    def insert(self, table_name: str, name: str, email: str) -> bool:
        """Insert one user row."""

    @abstractmethod
    def get_connection(self) -> Any:
        """Return the active driver connection."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True if the connection handle is open."""


class DatabaseConnection(ConnectionContract):
    """
    Abstract base class holding the state shared by every backend.

    Subclasses supply ``connect``/``disconnect`` for a concrete driver and may
    override ``_handle_is_open`` and ``driver_error`` so that the generic
    connection checks speak the driver's language. Everything else (select,
    insert, check) works on any DB-API 2.0 connection.

    Example Usage:
        ```python
        config = ConnectionConfig(url="mysql://localhost/app", user="app", password="secret")
        with MySQLConnection(config) as db:
            db.insert(USERS_TABLE, "Alice", "alice@example.com")
            db.select()
        ```
    """

    # Base class of the errors raised by the driver. Subclasses narrow it.
    driver_error: type = Exception

    def __init__(self, config: ConnectionConfig):
        """
        Initialize a database connection.

        Args:
            config: Validated connection settings

        Raises:
            DatabaseConfigError: If config is missing or of the wrong type
        """
        if not isinstance(config, ConnectionConfig):
            raise DatabaseConfigError("A ConnectionConfig is required to build a connection")
        self.config = config
        self._connection: Any = None

    # -----------------------------------------------------------------
    # Connection State
    # -----------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        """
        Check if the connection is currently active.

        Returns:
            bool: True if a handle exists and the driver does not report it
            closed. Errors raised while asking count as disconnected.
        """
        if self._connection is None:
            return False

        try:
            return self._handle_is_open()
        except self.driver_error as e:
            logger.error(f"Error checking connection status: {e}")
            return False

    def _handle_is_open(self) -> bool:
        """Ask the driver whether the current handle is still open."""
        return True

    def get_connection(self) -> Any:
        """
        Provide the active driver connection.

        Raises:
            DatabaseStateError: If connect() has not succeeded yet or the
                connection has been closed
        """
        if not self.is_connected:
            raise DatabaseStateError(
                "Connection is not active. Please call connect() before getting the connection."
            )
        return self._connection

    @property
    @abstractmethod
    def db_type(self) -> DatabaseType:
        """Return the type of database."""

    # -----------------------------------------------------------------
    # Users Table Operations
    # -----------------------------------------------------------------

    def check(self, table_name: str = USERS_TABLE) -> bool:
        """
        Create the users table if it is missing.

        Running it repeatedly is harmless; the statement is
        ``CREATE TABLE IF NOT EXISTS``.

        Args:
            table_name: Name of the users table

        Returns:
            bool: True if the table exists afterwards, False if not connected
            or the driver rejected the statement
        """
        if not self.is_connected:
            logger.error("Cannot check tables: the connection is not active")
            return False

        logger.info(f"Checking/creating table '{table_name}'...")
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(CREATE_USERS_TABLE_SQL.format(table=table_name))
            self._connection.commit()
        except self.driver_error as e:
            self._log_driver_error(f"Failed to check/create table '{table_name}'", e)
            return False

        logger.info(f"Table '{table_name}' checked/created successfully")
        return True

    def select(self, table_name: str = USERS_TABLE) -> bool:
        """
        Print every row of the users table to stdout.

        The table name is trusted input and is interpolated, not bound.

        Args:
            table_name: Name of the table to read

        Returns:
            bool: True when the query ran (even with zero rows), False when
            not connected or on driver error
        """
        if not self.is_connected:
            logger.error("Cannot fetch data: the database connection is not active")
            return False

        logger.info(f"Selecting rows from table: {table_name}")
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(SELECT_USERS_SQL.format(table=table_name))
                columns = [desc[0] for desc in cursor.description] if cursor.description else None

                print(f"--- Results from table: {table_name} ---")
                found = False
                for row in cursor:
                    found = True
                    print(UserRecord.from_row(row, columns))

            if not found:
                print("No records found in table.")
            print("-" * 40)
            return True

        except self.driver_error as e:
            self._log_driver_error(f"Failed to run SELECT on table '{table_name}'", e)
            return False

    def fetch_users(self, table_name: str = USERS_TABLE) -> List[UserRecord]:
        """
        Return every row of the users table as records.

        Args:
            table_name: Name of the table to read

        Returns:
            List of UserRecord in the order the server returned them

        Raises:
            DatabaseStateError: If not connected
            DatabaseQueryError: If the driver rejects the query
        """
        if not self.is_connected:
            raise DatabaseStateError("Not connected to database")

        try:
            return list(self._iter_users(table_name))
        except self.driver_error as e:
            self._log_driver_error(f"Failed to fetch users from table '{table_name}'", e)
            raise DatabaseQueryError(f"Failed to fetch users: {e}") from e

    def insert(self, table_name: str, name: str, email: str) -> bool:
        """
        Insert one user into a table with ``nome`` and ``email`` columns.

        Values are always bound as parameters.

        Args:
            table_name: Name of the table (e.g. "usuarios")
            name: User's name
            email: User's email, unique within the table

        Returns:
            bool: True if the driver reports at least one affected row
        """
        if not self.is_connected:
            logger.error("Cannot insert data: the database connection is not active")
            return False

        logger.info(f"Preparing insert into table: {table_name}")
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(INSERT_USER_SQL.format(table=table_name), (name, email))
                rows_affected = cursor.rowcount
            self._connection.commit()

        except self.driver_error as e:
            self._log_driver_error(f"Failed to insert into table '{table_name}'", e)
            return False

        if rows_affected > 0:
            logger.info(f"Insert succeeded. Rows affected: {rows_affected}")
            return True

        logger.error("Insert failed, no rows were changed")
        return False

    # -----------------------------------------------------------------
    # Helper Methods (Private)
    # -----------------------------------------------------------------

    def _iter_users(self, table_name: str):
        with self._connection.cursor() as cursor:
            cursor.execute(SELECT_USERS_SQL.format(table=table_name))
            columns = [desc[0] for desc in cursor.description] if cursor.description else None
            for row in cursor:
                yield UserRecord.from_row(row, columns)

    def _log_driver_error(self, action: str, error: BaseException) -> None:
        """Log a driver error with its code, SQL state and message."""
        details = describe_driver_error(error)
        logger.error(
            f"{action}. SQLState: {details['sql_state']} | "
            f"Error Code: {details['code']} | Message: {details['message']}"
        )

    def __enter__(self):
        """Support context manager protocol."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Cleanup on context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"{self.__class__.__name__}(type={self.db_type}, connected={self.is_connected})"


def describe_driver_error(error: BaseException) -> Dict[str, Any]:
    """
    Split a DB-API error into code, SQL state and message.

    MySQL drivers raise ``Error(code, message)``; the SQL state is only
    available when the driver sets a ``sqlstate`` attribute.
    """
    args = getattr(error, "args", ())
    code = args[0] if len(args) > 1 and isinstance(args[0], int) else None
    message = args[1] if code is not None else str(error)
    return {
        "code": code,
        "sql_state": getattr(error, "sqlstate", None),
        "message": message,
    }


# Exception classes for database operations
class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass

class DatabaseQueryError(Exception):
    """Raised when a query execution fails."""
    pass

class DatabaseStateError(RuntimeError):
    """Raised when an operation needs an open connection and there is none."""
    pass
