"""Create users, employer profiles and employer subscriptions.

Revision ID: 3f1c9a7b2e10
Revises:
Create Date: 2025-10-06 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c9a7b2e10"
down_revision = None
branch_labels = None
depends_on = None


SUBSCRIPTION_TYPES = (
    "TRIAL",
    "SPOTLIGHT",
    "BUNDLE",
    "UNLIMITED",
    "NETWORK",
    "NETWORK_QUARTERLY",
)
RENEWAL_PERIODS = ("ANNUAL", "QUARTERLY")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.String(length=32),
            nullable=False,
            server_default="professional",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "employer_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("company_name", sa.String(length=200), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_employer_profiles_user_id"),
    )

    op.create_table(
        "employer_subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "subscription_type",
            sa.Enum(*SUBSCRIPTION_TYPES, name="subscription_type", native_enum=False),
            nullable=False,
            server_default="TRIAL",
        ),
        sa.Column("subscription_start_date", sa.DateTime(), nullable=True),
        sa.Column("subscription_end_date", sa.DateTime(), nullable=True),
        sa.Column("job_credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("job_post_limit", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("jobs_posted_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unlimited_posting_end_date", sa.DateTime(), nullable=True),
        sa.Column("network_access_end_date", sa.DateTime(), nullable=True),
        sa.Column(
            "has_network_access", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "renewal_period",
            sa.Enum(*RENEWAL_PERIODS, name="renewal_period", native_enum=False),
            nullable=True,
        ),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("job_credits >= 0", name="ck_employer_subscriptions_credits"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_employer_subscriptions_user_id"),
    )
    op.create_index(
        "ix_employer_subscriptions_auto_renew",
        "employer_subscriptions",
        ["auto_renew"],
    )


def downgrade():
    op.drop_index(
        "ix_employer_subscriptions_auto_renew", table_name="employer_subscriptions"
    )
    op.drop_table("employer_subscriptions")
    op.drop_table("employer_profiles")
    op.drop_table("users")
