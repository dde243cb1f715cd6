import logging

from .database import insert_log


class SQLiteHandler(logging.Handler):
    """Persists game log records to the ``logs`` table."""

    def emit(self, record):
        try:
            insert_log(record.name, record.levelname, self.format(record))
        except Exception:
            self.handleError(record)
