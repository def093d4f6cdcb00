"""Add jobs and billing records.

Revision ID: 8d4e2b6c1a57
Revises: 3f1c9a7b2e10
Create Date: 2025-10-06 00:30:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8d4e2b6c1a57"
down_revision = "3f1c9a7b2e10"
branch_labels = None
depends_on = None


JOB_STATUSES = ("ACTIVE", "FILLED", "CLOSED", "DRAFT")
SUBSCRIPTION_TYPES = (
    "TRIAL",
    "SPOTLIGHT",
    "BUNDLE",
    "UNLIMITED",
    "NETWORK",
    "NETWORK_QUARTERLY",
)
BILLING_STATUSES = ("PENDING", "COMPLETED", "FAILED", "REFUNDED")


def upgrade():
    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*JOB_STATUSES, name="job_status_enum", native_enum=False),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_jobs_employer_id", "jobs", ["employer_id"])
    op.create_index("ix_jobs_status", "jobs", ["status"])

    op.create_table(
        "billing_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employer_profile_id",
            sa.Integer(),
            sa.ForeignKey("employer_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="usd"),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column(
            "subscription_type",
            sa.Enum(
                *SUBSCRIPTION_TYPES, name="billing_subscription_type", native_enum=False
            ),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*BILLING_STATUSES, name="billing_status", native_enum=False),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_invoice_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("stripe_session_id", name="uq_billing_records_stripe_session_id"),
    )
    op.create_index(
        "ix_billing_records_employer_profile_id",
        "billing_records",
        ["employer_profile_id"],
    )


def downgrade():
    op.drop_index("ix_billing_records_employer_profile_id", table_name="billing_records")
    op.drop_table("billing_records")
    op.drop_index("ix_jobs_status", table_name="jobs")
    op.drop_index("ix_jobs_employer_id", table_name="jobs")
    op.drop_table("jobs")
