import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from smart_scheduler.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


@pytest.fixture()
def memory_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch, memory_engine):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda bind: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(memory_engine)


def test_runtime_schema_bootstrap_creates_tables(memory_engine):
    bootstrap.ensure_runtime_schema_compatibility(memory_engine)

    with memory_engine.connect() as connection:
        assert bootstrap.find_missing_schema(connection) == ([], {})


def test_bootstrap_fails_fast_on_a_table_missing_required_columns(memory_engine):
    with memory_engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE saved_schedules (id VARCHAR(64) PRIMARY KEY, name VARCHAR(200) NOT NULL)")
        )
        missing_tables, missing_columns = bootstrap.find_missing_schema(connection)
    assert missing_tables == ["reference_collections"]
    assert missing_columns == {"saved_schedules": ["description", "is_published", "payload", "position"]}

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed") as exc_info:
        bootstrap.ensure_runtime_schema_compatibility(memory_engine)
    assert "saved_schedules.payload" in str(exc_info.value.__cause__)
