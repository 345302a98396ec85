from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[1]

def _config(url):
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg

def test_migrations_create_and_drop_schema(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = _config(url)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    inspector = inspect(engine)
    assert {"inventory", "inventory_adjustments"} <= set(inspector.get_table_names())
    unique_indexes = [ix for ix in inspector.get_indexes("inventory") if ix["unique"]]
    assert [ix["column_names"] for ix in unique_indexes] == [["product_id"]]
    assert {c["name"] for c in inspector.get_columns("inventory")} >= {"version", "low_stock_threshold", "updated_at"}
    # Ledger rows are not tied to the record's lifetime
    assert inspector.get_foreign_keys("inventory_adjustments") == []

    command.downgrade(cfg, "base")
    assert "inventory" not in inspect(engine).get_table_names()
    engine.dispose()
