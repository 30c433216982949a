import pytest
import pymysql

from src.database import ConnectionConfig, MySQLConnection


class FakeServer:
    """In-memory stand-in for the MySQL server behind the fake driver."""

    def __init__(self):
        self.tables = {}
        self.executed = []
        self.fail_on = None
        self.fail_error = None
        self.insert_rowcount = None
        self.commits = 0

    def fail(self, fragment, error):
        self.fail_on, self.fail_error = fragment, error

    def add_table(self, name):
        self.tables.setdefault(name, {"rows": [], "next_id": 1})


class FakeCursor:
    def __init__(self, server):
        self.server = server
        self.rows = []
        self.rowcount = -1
        self.description = None
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.closed = True

    def execute(self, query, args=None):
        self.server.executed.append((query, args))
        if self.server.fail_on and self.server.fail_on in query:
            raise self.server.fail_error

        if query.startswith("SELECT VERSION()"):
            self.rows = [{"version": "8.0.36"}]
        elif query.startswith("SELECT 1"):
            self.rows = [{"test": 1}]
        elif query.startswith("CREATE TABLE IF NOT EXISTS"):
            self.server.add_table(query.split()[5])
            self.rowcount = 0
        elif query.startswith("INSERT INTO"):
            table = self._table(query.split()[2])
            name, email = args
            if any(row["email"] == email for row in table["rows"]):
                raise pymysql.err.IntegrityError(1062, f"Duplicate entry '{email}' for key 'email'")
            if self.server.insert_rowcount == 0:
                self.rowcount = 0
                return 0
            table["rows"].append({"id": table["next_id"], "nome": name, "email": email})
            table["next_id"] += 1
            self.rowcount = 1
        elif query.startswith("SELECT id, nome, email FROM"):
            table = self._table(query.split()[-1])
            self.rows = [dict(row) for row in table["rows"]]
            self.description = (("id",), ("nome",), ("email",))
            self.rowcount = len(self.rows)
        else:
            raise pymysql.err.ProgrammingError(1064, f"Unexpected query: {query}")
        return self.rowcount

    def _table(self, name):
        if name not in self.server.tables:
            raise pymysql.err.ProgrammingError(1146, f"Table 'app.{name}' doesn't exist")
        return self.server.tables[name]

    def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    def __iter__(self):
        while self.rows:
            yield self.rows.pop(0)


class FakeConnection:
    def __init__(self, server, **params):
        self.server = server
        self.params = params
        self._open = True
        self.open_error = None
        self.close_error = None
        self.cursors = []

    @property
    def open(self):
        if self.open_error is not None:
            raise self.open_error
        return self._open

    @open.setter
    def open(self, value):
        self._open = value

    def cursor(self, cursor=None):
        c = FakeCursor(self.server)
        self.cursors.append(c)
        return c

    def commit(self):
        self.server.commits += 1

    def close(self):
        if self.close_error is not None:
            raise self.close_error
        if not self._open:
            raise pymysql.err.Error("Already closed")
        self._open = False


@pytest.fixture()
def server():
    return FakeServer()


@pytest.fixture()
def connect_calls(server, monkeypatch):
    calls = []

    def fake_connect(**params):
        if server.fail_on == "connect":
            raise server.fail_error
        calls.append(params)
        return FakeConnection(server, **params)

    monkeypatch.setattr(pymysql, "connect", fake_connect)
    return calls


@pytest.fixture()
def config():
    return ConnectionConfig(url="mysql://db.local:3307/app", user="app", password="secret")


@pytest.fixture()
def db(config, connect_calls):
    return MySQLConnection(config)


@pytest.fixture()
def connected_db(db):
    db.connect()
    yield db
    db.disconnect()
