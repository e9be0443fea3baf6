"""
Database models for the parity launcher.

Uses Peewee ORM with SQLite. Stores one row per parity launch with its exit
result, and the output chunks parity produced.
"""

import os
from datetime import datetime

from peewee import (
    AutoField,
    CharField,
    DatabaseProxy,
    DateTimeField,
    ForeignKeyField,
    IntegerField,
    Model,
    SqliteDatabase,
    TextField,
)

from .config import config

database = DatabaseProxy()


def initialize_db(db_path=None):
    """Initialize database connection and create tables."""
    db_path = db_path or config.db_path
    os.makedirs(os.path.dirname(db_path), exist_ok=True)
    db = SqliteDatabase(
        str(db_path),
        pragmas={
            "journal_mode": "wal",
            "cache_size": -64 * 1000,
            "foreign_keys": 1,
            "busy_timeout": 5000,
        },
    )
    database.initialize(db)
    database.create_tables([ParityRun, LogEntry], safe=True)


class BaseModel(Model):
    """Base model with common configuration."""

    class Meta:
        database = database


class ParityRun(BaseModel):
    """A single launch of the parity process."""

    id = AutoField()
    command = TextField()
    pid = IntegerField(null=True)
    started_at = DateTimeField(default=datetime.now, index=True)
    ended_at = DateTimeField(null=True)
    exit_code = IntegerField(null=True)
    signal = CharField(null=True)
    outcome = CharField(null=True)  # clean, conflict, fatal, stopped
    last_output = TextField(null=True)

    class Meta:
        table_name = "parity_runs"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "command": self.command,
            "pid": self.pid,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "exit_code": self.exit_code,
            "signal": self.signal,
            "outcome": self.outcome,
            "last_output": self.last_output,
        }


class LogEntry(BaseModel):
    """An output chunk from parity's stdout/stderr."""

    id = AutoField()
    run = ForeignKeyField(ParityRun, backref="logs", on_delete="CASCADE")
    message = TextField()
    timestamp = DateTimeField(default=datetime.now, index=True)

    class Meta:
        table_name = "log_entries"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "run_id": self.run_id,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
