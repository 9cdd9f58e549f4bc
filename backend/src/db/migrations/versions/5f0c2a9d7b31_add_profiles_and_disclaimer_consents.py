"""
Add profiles and medical disclaimer consents tables.

Revision ID: 5f0c2a9d7b31
Revises:
Create Date: 2026-09-28 10:14:52.318640
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5f0c2a9d7b31"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "profiles",
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Identity provider user id (auth.users.id)",
        ),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column(
            "name",
            sa.String(length=100),
            nullable=True,
            comment="Display name chosen at signup; used as the username",
        ),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column(
            "last_disclaimer_shown",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="When the medical disclaimer was last accepted",
        ),
        sa.Column(
            "disclaimer_dont_show",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
            comment="User preference; only suppresses the prompt inside the re-consent window",
        ),
        sa.Column("sex", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("weight_unit", sa.String(length=3), server_default="kg", nullable=False),
        sa.Column(
            "has_chronic_condition", sa.Boolean(), server_default=sa.false(), nullable=False,
        ),
        sa.Column("dietary_preset", sa.String(length=50), nullable=True),
        sa.Column("dietary_preferences", sa.JSON(), nullable=False),
        sa.Column("food_allergies", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_profiles_name"), "profiles", ["name"], unique=True)

    op.create_table(
        "medical_disclaimer_consents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            nullable=False,
            comment="Foreign key to profiles table - many consent records per user",
        ),
        sa.Column(
            "consented_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Timestamp when user accepted the disclaimer",
        ),
        sa.Column(
            "user_agent",
            sa.Text(),
            nullable=True,
            comment="Browser user agent at time of consent",
        ),
        sa.Column(
            "ip_address",
            sa.String(length=45),
            nullable=True,
            comment="Reserved; not captured",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_medical_disclaimer_consents_user_id"),
        "medical_disclaimer_consents",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        op.f("ix_medical_disclaimer_consents_user_id"),
        table_name="medical_disclaimer_consents",
    )
    op.drop_table("medical_disclaimer_consents")
    op.drop_index(op.f("ix_profiles_name"), table_name="profiles")
    op.drop_table("profiles")
