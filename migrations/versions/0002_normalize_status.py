"""normalize task status spellings and completed flag

Revision ID: 0002_normalize_status
Revises: 0001_init_schema
Create Date: 2025-09-14 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op

from tasklane.migrations import normalize_task_statuses


# revision identifiers, used by Alembic.
revision: str = "0002_normalize_status"
down_revision: Union[str, Sequence[str], None] = "0001_init_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Rewrite legacy 'in_progress'-style values to 'in progress'; re-derive completed."""
    normalize_task_statuses(op.get_bind())


def downgrade() -> None:
    # Data-only migration: the old spellings are not restored.
    pass
