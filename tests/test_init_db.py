"""Tests for the database initialization script."""

from pathlib import Path

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError

import waitlist_gate
from waitlist_gate.scripts import init_db as init_db_script


def test_init_db_creates_waitlist_table(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'waitlist.db'}"

    assert init_db_script.main(["--url", url]) == 0

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert "waitlist" in inspector.get_table_names()
        columns = {column["name"] for column in inspector.get_columns("waitlist")}
    finally:
        engine.dispose()
    assert columns == {
        "id",
        "twitter_id",
        "twitter_username",
        "twitter_display_name",
        "wallet_address",
        "created_at",
        "updated_at",
    }


def test_migrate_flag_runs_alembic(mocker) -> None:
    upgrade = mocker.patch.object(init_db_script.command, "upgrade")

    assert init_db_script.main(["--migrate", "--url", "sqlite:///migrated.db"]) == 0

    cfg, revision = upgrade.call_args.args
    assert revision == "head"
    assert cfg.get_main_option("sqlalchemy.url") == "sqlite:///migrated.db"
    assert cfg.get_main_option("script_location") == str(init_db_script.MIGRATIONS_DIR)


def test_database_errors_return_nonzero(mocker) -> None:
    mocker.patch.object(
        init_db_script,
        "init_db",
        side_effect=OperationalError("CREATE", {}, Exception("unable to open database")),
    )

    assert init_db_script.main(["--url", "sqlite:///nowhere.db"]) == 1


def test_migrations_ship_inside_the_package() -> None:
    package_dir = Path(waitlist_gate.__file__).resolve().parent

    assert init_db_script.MIGRATIONS_DIR == package_dir / "migrations"
    assert (init_db_script.MIGRATIONS_DIR / "env.py").is_file()
    assert sorted(path.name for path in (init_db_script.MIGRATIONS_DIR / "versions").glob("*.py")) == [
        "3b1f9c2a7d10_create_waitlist.py",
        "8c4e2d19f6a3_add_wallet_columns.py",
    ]
