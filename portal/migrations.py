from sqlalchemy import inspect, text

from .db import engine


def _timestamp_column() -> str:
    if engine.dialect.name == "postgresql":
        return "TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
    return "DATETIME"


def _size_column() -> str:
    return "BIGINT" if engine.dialect.name == "postgresql" else "INTEGER"


def ensure_schema() -> None:
    """Add columns introduced after a mappings table was first created."""
    inspector = inspect(engine)
    if "game_mappings" not in set(inspector.get_table_names()):
        return

    columns = {col["name"] for col in inspector.get_columns("game_mappings")}
    alters = []
    if "name" not in columns:
        alters.append("ALTER TABLE game_mappings ADD COLUMN name VARCHAR(200)")
    if "size_bytes" not in columns:
        alters.append(f"ALTER TABLE game_mappings ADD COLUMN size_bytes {_size_column()}")
    if "art" not in columns:
        alters.append("ALTER TABLE game_mappings ADD COLUMN art VARCHAR(500)")
    if "created_at" not in columns:
        alters.append(f"ALTER TABLE game_mappings ADD COLUMN created_at {_timestamp_column()}")
    if "updated_at" not in columns:
        alters.append(f"ALTER TABLE game_mappings ADD COLUMN updated_at {_timestamp_column()}")
    _apply_alters(alters)


def _apply_alters(statements: list[str]) -> None:
    if not statements:
        return
    with engine.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
