def test_get_engine_kwargs_sqlite_has_check_same_thread():
    from taskflow.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./taskflow.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_reads_pool_settings(monkeypatch):
    from taskflow.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "8")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "2")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "15")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 8
    assert kwargs["max_overflow"] == 2
    assert kwargs["pool_timeout"] == 15


def test_debug_enables_echo(monkeypatch):
    from taskflow.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite:///./taskflow.db")["echo"] is True
    monkeypatch.setenv("DEBUG", "false")
    assert db.get_engine_kwargs("sqlite:///./taskflow.db")["echo"] is False


def test_sqlite_url_detection():
    from taskflow.database import database as db

    assert db._is_sqlite_url("sqlite:///./taskflow.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False
    assert db._is_sqlite_url("") is False


def test_legacy_auto_priority_rows_load_as_medium(db_session):
    from taskflow.database.models import TaskDB

    db_session.add(TaskDB(id="legacy", user_id="u1", title="Old row", priority="auto", status="bogus"))
    db_session.commit()

    task = db_session.query(TaskDB).first().to_pydantic()
    assert task.priority == "medium"
    assert task.status == "todo"
    assert task.tags == []
