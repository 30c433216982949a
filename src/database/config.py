"""
Connection configuration.

Holds the endpoint URL, user and password for one database connection and
turns them into the keyword arguments PyMySQL expects. Values are validated
once, at construction, and the object is immutable afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, unquote, urlsplit
import logging
import os

import pymysql.cursors
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)


ENV_URL = "DB_URL"
ENV_USER = "DB_USER"
ENV_PASSWORD = "DB_PASSWORD"

# Names used by earlier .env files
LEGACY_ENV_NAMES = {
    ENV_URL: "URL_JDBC",
    ENV_USER: "USER_JDBC",
    ENV_PASSWORD: "PASSWORD_JDBC",
}

DEFAULT_PORT = 3306
DEFAULT_CHARSET = "utf8mb4"

_TRUE_VALUES = ("1", "true", "yes", "on")


class DatabaseConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Settings for a single MySQL connection.

    Attributes:
        url: ``mysql://host[:port]/database[?charset=..&connect_timeout=..&ssl=..]``.
             A leading ``jdbc:`` is accepted.
        user: Database username
        password: Password, or ``env:NAME`` to read it from the environment
    """
    url: str
    user: str
    password: str = field(repr=False)

    def __post_init__(self):
        for name in ("url", "user", "password"):
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise DatabaseConfigError("URL, USER, and PASSWORD cannot be empty.")
            if not isinstance(value, str):
                raise DatabaseConfigError(f"Config value '{name}' must be a string")

        object.__setattr__(self, "password", _resolve_password(self.password))
        # Fail at construction rather than at connect time
        self.connect_params()

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ConnectionConfig":
        """
        Build a config from DB_URL, DB_USER and DB_PASSWORD.

        A ``.env`` file is loaded first: ``env_file`` when given, otherwise the
        nearest ``.env`` found from the working directory upwards. Variables
        already present in the environment win. The older URL_JDBC,
        USER_JDBC and PASSWORD_JDBC names are read when the DB_* names are
        not set.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        logger.debug(f"Loading connection settings from {ENV_URL}, {ENV_USER}, {ENV_PASSWORD}")
        return cls(
            url=_getenv(ENV_URL),
            user=_getenv(ENV_USER),
            password=_getenv(ENV_PASSWORD),
        )

    def connect_params(self) -> Dict[str, Any]:
        """
        Translate the URL into ``pymysql.connect`` keyword arguments.

        Raises:
            DatabaseConfigError: If the URL is not a usable MySQL URL
        """
        url = self.url.strip()
        if url.lower().startswith("jdbc:"):
            url = url[5:]

        parts = urlsplit(url)
        if parts.scheme.lower() != "mysql":
            raise DatabaseConfigError(f"Unsupported URL scheme: '{parts.scheme}' (expected mysql)")
        if not parts.hostname:
            raise DatabaseConfigError("Database URL is missing a host")

        database = unquote(parts.path.lstrip("/"))
        if not database:
            raise DatabaseConfigError("Database URL is missing a database name")

        try:
            port = parts.port or DEFAULT_PORT
        except ValueError as e:
            raise DatabaseConfigError(f"Invalid port in database URL: {e}") from e

        options = {key: values[-1] for key, values in parse_qs(parts.query).items()}

        conn_params = {
            'host': parts.hostname,
            'port': port,
            'user': self.user,
            'password': self.password,
            'database': database,
            'charset': options.get('charset', DEFAULT_CHARSET),
            'cursorclass': pymysql.cursors.DictCursor,
            'autocommit': options.get('autocommit', 'true').lower() in _TRUE_VALUES,
        }

        if options.get('ssl', '').lower() in _TRUE_VALUES:
            conn_params['ssl'] = {'ssl': True}

        if 'connect_timeout' in options:
            try:
                conn_params['connect_timeout'] = int(options['connect_timeout'])
            except ValueError as e:
                raise DatabaseConfigError(
                    f"connect_timeout must be an integer, got '{options['connect_timeout']}'"
                ) from e

        return conn_params

    @property
    def endpoint(self) -> str:
        """host:port/database, safe to log."""
        params = self.connect_params()
        return f"{params['host']}:{params['port']}/{params['database']}"


def _resolve_password(password: str) -> str:
    """Resolve ``env:NAME`` references to the variable's value."""
    if password.startswith('env:'):
        env_var = password[4:]
        password = os.getenv(env_var, '')
        if not password:
            raise DatabaseConfigError(f"Environment variable {env_var} not set")
    return password


def _getenv(name: str) -> Optional[str]:
    """Read a setting, falling back to its legacy name."""
    value = os.getenv(name)
    if not value:
        value = os.getenv(LEGACY_ENV_NAMES[name])
    return value
