"""Create user_property table

Revision ID: 3e7a1c5b9d02
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3e7a1c5b9d02"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user_property",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scope", sa.String(length=120), nullable=False),
        sa.Column("key", sa.String(length=120), nullable=False),
        sa.Column("value", sa.String(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope", "key", name="uq_user_property_scope_key"),
    )
    with op.batch_alter_table("user_property", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_user_property_scope"), ["scope"], unique=False)
        batch_op.create_index(batch_op.f("ix_user_property_created_at"), ["created_at"], unique=False)


def downgrade():
    with op.batch_alter_table("user_property", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_user_property_created_at"))
        batch_op.drop_index(batch_op.f("ix_user_property_scope"))
    op.drop_table("user_property")
