import json
from datetime import datetime

import pytest

from cloudbot.config.models import MySQLSettings
from cloudbot.errors import RecordNotFoundError
from cloudbot.store.mysql import MySQLStatusStore
from cloudbot.workloads.models import BotStatus, CreateBotRequest


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.lastrowid = None
        self._result = []

    def __enter__(self):
        return self

    def __exit__(self, *a):
        return False

    def execute(self, sql, params=()):
        self.conn.executed.append((" ".join(sql.split()), params))
        rows = self.conn.rows
        if sql.startswith("INSERT"):
            owner, name, token, services, status = params
            new_id = max(rows, default=0) + 1
            rows[new_id] = {
                "id": new_id, "user_id": owner, "name": name, "token": token,
                "servicios": services, "status": status, "url": None,
                "deploy_url": None, "kubernetes_deployment": None,
                "error_message": None, "created_at": datetime(2026, 10, 18, 12, 0, 0),
            }
            self.lastrowid = new_id
            return 1
        if sql.startswith("SELECT * FROM bots WHERE id"):
            row = rows.get(params[0])
            self._result = [dict(row)] if row else []
            return len(self._result)
        if sql.startswith("UPDATE"):
            *values, bot_id = params
            cols = [part.split(" = ")[0].strip() for part in sql[len("UPDATE bots SET "):sql.index(" WHERE")].split(",")]
            if bot_id in rows:
                rows[bot_id].update(dict(zip(cols, values)))
                return 1
            return 0
        if sql.startswith("DELETE"):
            return 1 if rows.pop(params[0], None) else 0
        if sql.startswith("SELECT * FROM bots WHERE user_id"):
            self._result = [dict(r) for r in rows.values() if r["user_id"] == params[0]]
            return len(self._result)
        return 0

    def fetchone(self):
        return self._result[0] if self._result else None

    def fetchall(self):
        return list(self._result)


class FakeConn:
    def __init__(self, rows, executed):
        self.rows = rows
        self.executed = executed
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.fixture
def db():
    state = {"rows": {}, "executed": [], "conns": []}

    def connect(**kwargs):
        state["kwargs"] = kwargs
        conn = FakeConn(state["rows"], state["executed"])
        state["conns"].append(conn)
        return conn

    state["connect"] = connect
    return state


def test_insert_and_get(db):
    store = MySQLStatusStore(MySQLSettings(database="botsdb"), connect=db["connect"])
    rec = store.insert(CreateBotRequest(owner_id=3, name="funbot", token="1:t", capabilities=["clima", "ia"]))

    assert rec.id == 1
    assert rec.capabilities == ["clima", "ia"]
    assert rec.status == BotStatus.CREATING
    assert json.loads(db["rows"][1]["servicios"]) == ["clima", "ia"]
    assert db["kwargs"]["database"] == "botsdb"
    assert all(c.committed and c.closed for c in db["conns"])


def test_update_maps_fields_to_columns(db):
    store = MySQLStatusStore(MySQLSettings(), connect=db["connect"])
    rec = store.insert(CreateBotRequest(owner_id=3, name="funbot", token="1:t", capabilities=["clima"]))

    out = store.update(
        rec.id,
        status=BotStatus.ACTIVE,
        public_url="https://t.me/funbot",
        internal_address="http://funbot-service.bot-platform.svc.cluster.local",
        cluster_reference="bot-funbot-1",
        error_message=None,
    )

    row = db["rows"][1]
    assert row["status"] == "active"
    assert row["url"] == "https://t.me/funbot"
    assert row["kubernetes_deployment"] == "bot-funbot-1"
    assert out.status == BotStatus.ACTIVE
    assert out.cluster_reference == "bot-funbot-1"


def test_missing_and_delete(db):
    store = MySQLStatusStore(MySQLSettings(), connect=db["connect"])
    with pytest.raises(RecordNotFoundError):
        store.get(42)
    rec = store.insert(CreateBotRequest(owner_id=1, name="funbot", token="1:t", capabilities=["ia"]))
    assert store.delete(rec.id) is True
    assert store.delete(rec.id) is False


def test_failed_statement_rolls_back(db):
    def connect(**kwargs):
        conn = FakeConn(db["rows"], db["executed"])
        db["conns"].append(conn)

        def boom(*a, **k):
            raise RuntimeError("lost connection")

        conn.cursor = lambda: type("C", (), {"__enter__": lambda s: s, "__exit__": lambda s, *a: False, "execute": boom})()
        return conn

    store = MySQLStatusStore(MySQLSettings(), connect=connect)
    with pytest.raises(RuntimeError):
        store.get(1)
    assert db["conns"][-1].rolled_back
    assert db["conns"][-1].closed
