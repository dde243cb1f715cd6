import os
import sqlite3
from contextlib import closing, contextmanager

from .config import settings

LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    logger TEXT,
    level TEXT,
    message TEXT
);
"""


def db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


@contextmanager
def connect():
    """Yields a row-factory connection that commits on success and always closes."""
    with closing(sqlite3.connect(db_path())) as conn:
        conn.row_factory = sqlite3.Row
        with conn:
            yield conn


def init_db():
    os.makedirs(settings.DB_DIR, exist_ok=True)
    with connect() as conn:
        conn.executescript(LOGS_SCHEMA)


def insert_log(logger_name: str, level: str, message: str):
    with connect() as conn:
        conn.execute(
            "INSERT INTO logs (logger, level, message) VALUES (?, ?, ?)",
            (logger_name, level, message),
        )


def fetch_logs(limit: int = 100):
    """Most recent log rows first."""
    with connect() as conn:
        rows = conn.execute(
            "SELECT timestamp, logger, level, message FROM logs ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [dict(row) for row in rows]
