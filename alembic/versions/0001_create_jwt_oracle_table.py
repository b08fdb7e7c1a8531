"""Create the revocation table for live token identifiers.

The table name comes from JWT_ORACLE_TABLE_NAME (default "JWT_ORACLE").

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op
from jwt_oracle.core import settings
from jwt_oracle.models import NEVER_EXPIRES

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    table_name = settings.jwt_oracle_table_name
    op.create_table(
        table_name,
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column(
            "expiredAt",
            sa.BigInteger(),
            nullable=False,
            server_default=sa.text(str(NEVER_EXPIRES)),
        ),
    )
    op.create_index(f"ix_{table_name}_expiredAt", table_name, ["expiredAt"])


def downgrade() -> None:
    table_name = settings.jwt_oracle_table_name
    op.drop_index(f"ix_{table_name}_expiredAt", table_name=table_name)
    op.drop_table(table_name)
