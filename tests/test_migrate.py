import pytest
import sqlalchemy as sa

from minibank.migrate import MigrationError, main, migrate, run_migration
from minibank.model import Company
from minibank.repo import Repo


@pytest.fixture
def engine(tmp_path):
    eng = sa.create_engine(f"sqlite:///{tmp_path / 'app.db'}")
    yield eng
    eng.dispose()


def test_run_migration_file_error(engine, tmp_path):
    with pytest.raises(MigrationError, match="reading file"):
        run_migration(engine, tmp_path / "nonexistent.sql")


def test_run_migration_exec_error(engine, tmp_path):
    path = tmp_path / "dummy.sql"
    path.write_text("SELEC 1;")
    with pytest.raises(MigrationError, match="executing migration"):
        run_migration(engine, path)


def test_run_migration_success(engine, tmp_path):
    path = tmp_path / "dummy.sql"
    path.write_text("CREATE TABLE t(id INT);")
    run_migration(engine, path)
    assert sa.inspect(engine).get_table_names() == ["t"]


def test_migrate_success_in_name_order(engine, tmp_path, monkeypatch):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "002_insert.sql").write_text("INSERT INTO t (id) VALUES (7);")
    (migrations / "001_create.sql").write_text("CREATE TABLE t(id INT);")
    monkeypatch.chdir(tmp_path)

    migrate(engine)

    with engine.connect() as conn:
        assert conn.exec_driver_sql("SELECT id FROM t").scalars().all() == [7]


def test_migrate_reports_failing_file(engine, tmp_path):
    migrations = tmp_path / "m"
    migrations.mkdir()
    (migrations / "001_bad.sql").write_text("NOT SQL;")
    with pytest.raises(MigrationError, match="running migration 001_bad.sql: executing migration"):
        migrate(engine, migrations)


def test_migrate_missing_directory(engine, tmp_path):
    with pytest.raises(MigrationError, match="reading migrations directory"):
        migrate(engine, tmp_path / "absent")


def test_main_runs_migrations(tmp_path, monkeypatch):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_create.sql").write_text(
        "CREATE TABLE company (company_id INTEGER PRIMARY KEY, company_name TEXT NOT NULL);"
    )
    (migrations / "002_insert.sql").write_text(
        "INSERT INTO company (company_name) VALUES ('Acme');"
    )
    db_path = tmp_path / "main.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.chdir(tmp_path)

    main([])

    eng = sa.create_engine(f"sqlite:///{db_path}")
    try:
        assert sa.inspect(eng).get_table_names() == ["company"]
        assert Repo(eng).list_companies() == [Company(id=1, name="Acme")]
    finally:
        eng.dispose()


def test_main_exits_on_failure(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'x.db'}")
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit, match="failed to migrate"):
        main([])