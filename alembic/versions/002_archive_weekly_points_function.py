"""Add archive_weekly_points function

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Archivado atómico del lado del servidor. Lo invoca el settlement semanal
una vez por grupo.
"""
from typing import Sequence, Union

from alembic import op

from groupgainz.db.functions import (
    CREATE_ARCHIVE_WEEKLY_POINTS,
    DROP_ARCHIVE_WEEKLY_POINTS,
)

revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Solo PostgreSQL; en SQLite el repositorio usa un UPDATE directo
    if op.get_context().dialect.name != "postgresql":
        return
    op.execute(CREATE_ARCHIVE_WEEKLY_POINTS)


def downgrade() -> None:
    if op.get_context().dialect.name != "postgresql":
        return
    op.execute(DROP_ARCHIVE_WEEKLY_POINTS)
