from __future__ import annotations

import logging
from typing import Any, Optional

import sqlalchemy as sa
from alembic import op

from .config import UserstampConfig, get_config

logger = logging.getLogger(__name__)


def _column_names(include_deleter: bool, config: Optional[UserstampConfig]) -> tuple[str, ...]:
    return (config or get_config()).column_names(include_deleter)


def declare_userstamp_columns(
    include_deleter: bool = False,
    *,
    config: Optional[UserstampConfig] = None,
) -> list[sa.Column]:
    """
    Userstamp columns for a table being created.

    Usage (inside an Alembic migration):

        op.create_table(
            "posts",
            sa.Column("id", sa.Integer(), primary_key=True),
            *declare_userstamp_columns(include_deleter=True),
        )
    """
    return [sa.Column(name, sa.Integer(), nullable=True) for name in _column_names(include_deleter, config)]


def _existing_columns(operations: Any, table_name: str, schema: Optional[str]) -> set[str]:
    # Offline (--sql) migrations have no connection to inspect.
    if operations.get_context().as_sql:
        return set()
    inspector = sa.inspect(operations.get_bind())
    return {column["name"] for column in inspector.get_columns(table_name, schema=schema)}


def add_userstamp_columns(
    table_name: str,
    include_deleter: bool = False,
    *,
    schema: Optional[str] = None,
    config: Optional[UserstampConfig] = None,
    operations: Any = None,
) -> list[str]:
    """
    Add the userstamp columns to an existing table.

    Columns the table already has are skipped, so re-running is harmless.
    Returns the names of the columns that were added.

    Args:
        table_name: Table to alter
        include_deleter: Also add the deleter column
        schema: Optional schema name
        config: Naming configuration; defaults to the process configuration
        operations: Alembic Operations; defaults to alembic.op
    """
    operations = operations if operations is not None else op
    existing = _existing_columns(operations, table_name, schema)

    added: list[str] = []
    for name in _column_names(include_deleter, config):
        if name in existing:
            logger.info("Column %s.%s already exists; skipping", table_name, name)
            continue
        operations.add_column(table_name, sa.Column(name, sa.Integer(), nullable=True), schema=schema)
        added.append(name)

    logger.info("Added userstamp columns to %s: %s", table_name, added)
    return added


def remove_userstamp_columns(
    table_name: str,
    include_deleter: bool = False,
    *,
    schema: Optional[str] = None,
    config: Optional[UserstampConfig] = None,
    operations: Any = None,
) -> list[str]:
    """
    Drop the userstamp columns from a table. Returns the names of the dropped columns.
    """
    operations = operations if operations is not None else op
    names = list(_column_names(include_deleter, config))
    for name in names:
        operations.drop_column(table_name, name, schema=schema)

    logger.info("Removed userstamp columns from %s: %s", table_name, names)
    return names
