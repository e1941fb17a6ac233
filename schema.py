from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.exc import DBAPIError

from db import Base


_log = logging.getLogger("schema")

_TABLE = "job_applications"


def _quoted(name: str) -> str:
    return '"' + str(name).replace('"', '""') + '"'


def _ensure_column(engine, *, table: str, column: str, ddl_type: str, default_sql: str = "NULL") -> None:
    insp = inspect(engine)
    cols = {c.get("name") for c in insp.get_columns(table)}
    if column in cols:
        return
    ddl = f"ALTER TABLE {_quoted(table)} ADD COLUMN {_quoted(column)} {ddl_type} DEFAULT {default_sql}"
    with engine.begin() as conn:
        conn.execute(text(ddl))
    _log.info("added column %s.%s", table, column)


def _has_unique(engine, *, table: str, column: str) -> bool:
    insp = inspect(engine)
    for uc in insp.get_unique_constraints(table):
        if list(uc.get("column_names") or []) == [column]:
            return True
    for ix in insp.get_indexes(table):
        if ix.get("unique") and list(ix.get("column_names") or []) == [column]:
            return True
    return False


def _ensure_index(engine, *, name: str, table: str, column: str, unique: bool = False) -> None:
    if unique and _has_unique(engine, table=table, column=column):
        return
    kind = "UNIQUE INDEX" if unique else "INDEX"
    ddl = f"CREATE {kind} IF NOT EXISTS {_quoted(name)} ON {_quoted(table)}({_quoted(column)})"
    try:
        with engine.begin() as conn:
            conn.execute(text(ddl))
    except DBAPIError:
        # Existing duplicates block a unique index; the app still runs, inserts just lose the guarantee.
        _log.exception("could not create index %s on %s.%s", name, table, column)


def ensure_schema(engine) -> None:
    """
    Create tables and bring an older `job_applications` table up to date.

    Idempotent. Tables created by earlier deployments may lack the version
    and updated_at columns and the email/mobile uniqueness guarantees.
    """
    from applications import models  # noqa: F401  registers the table on Base

    Base.metadata.create_all(bind=engine)

    _ensure_column(engine, table=_TABLE, column="updated_at", ddl_type="TEXT", default_sql="''")
    _ensure_column(engine, table=_TABLE, column="version", ddl_type="INTEGER NOT NULL", default_sql="1")
    _ensure_column(engine, table=_TABLE, column="additional_files_path", ddl_type="VARCHAR(255)")
    _ensure_column(engine, table=_TABLE, column="offer_letter_path", ddl_type="VARCHAR(255)")

    _ensure_index(engine, name="ux_job_applications_email", table=_TABLE, column="email", unique=True)
    _ensure_index(engine, name="ux_job_applications_mobile_number", table=_TABLE, column="mobile_number", unique=True)
    _ensure_index(engine, name="ix_job_applications_status", table=_TABLE, column="status")
