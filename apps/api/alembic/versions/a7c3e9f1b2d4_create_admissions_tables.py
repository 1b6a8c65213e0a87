"""create admissions tables

Revision ID: a7c3e9f1b2d4
Revises:
Create Date: 2026-10-17 09:00:00.000000

This migration creates:
1. applicants - one row per application, keyed by the issued admission id
2. applicant_documents - uploaded documents (FK -> applicants, ON DELETE CASCADE)
3. applicant_notifications - messages sent to applicants (FK -> applicants)
4. email_verifications - one-time codes, at most one per email

Enum types are created before the tables that use them.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c3e9f1b2d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

applicant_status_enum = postgresql.ENUM(
    "pending", "accepted", "rejected", name="applicant_status", create_type=False
)
document_type_enum = postgresql.ENUM(
    "birth_certificate",
    "form137",
    "shs_transcript",
    "2x2_picture",
    name="document_type",
    create_type=False,
)
notification_type_enum = postgresql.ENUM(
    "info", "decision", name="notification_type", create_type=False
)


def upgrade() -> None:
    """Create enum types and admissions tables."""
    bind = op.get_bind()
    applicant_status_enum.create(bind, checkfirst=True)
    document_type_enum.create(bind, checkfirst=True)
    notification_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "applicants",
        sa.Column("admission_id", sa.String(length=20), nullable=False),
        # Personal information
        sa.Column("lastname", sa.String(length=100), nullable=False),
        sa.Column("firstname", sa.String(length=100), nullable=False),
        sa.Column("middlename", sa.String(length=100), nullable=True),
        sa.Column("suffix", sa.String(length=20), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("birth_place", sa.String(length=200), nullable=True),
        sa.Column("gender", sa.String(length=20), nullable=False),
        sa.Column("citizenship", sa.String(length=100), nullable=True),
        sa.Column("civil_status", sa.String(length=50), nullable=True),
        sa.Column("religion", sa.String(length=100), nullable=True),
        sa.Column("ethnicity", sa.String(length=100), nullable=True),
        # Address and contact
        sa.Column("street", sa.String(length=200), nullable=True),
        sa.Column("barangay", sa.String(length=100), nullable=True),
        sa.Column("municipality", sa.String(length=100), nullable=True),
        sa.Column("province", sa.String(length=100), nullable=True),
        sa.Column("home_address", sa.String(length=500), nullable=True),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        # Educational background
        sa.Column("last_school_attended", sa.String(length=200), nullable=True),
        sa.Column("strand_taken", sa.String(length=100), nullable=True),
        sa.Column("school_type", sa.String(length=50), nullable=True),
        sa.Column("year_graduated", sa.Integer(), nullable=True),
        sa.Column("school_address", sa.String(length=500), nullable=True),
        # Family information
        sa.Column("father_name", sa.String(length=200), nullable=True),
        sa.Column("father_occupation", sa.String(length=100), nullable=True),
        sa.Column("mother_name", sa.String(length=200), nullable=True),
        sa.Column("mother_occupation", sa.String(length=100), nullable=True),
        sa.Column("parent_number", sa.String(length=20), nullable=True),
        sa.Column("family_income", sa.String(length=100), nullable=True),
        # Course preferences
        sa.Column("preferred_course", sa.String(length=150), nullable=False),
        sa.Column("alternate_course_1", sa.String(length=150), nullable=True),
        sa.Column("alternate_course_2", sa.String(length=150), nullable=True),
        # Status tracking
        sa.Column(
            "applicant_status",
            applicant_status_enum,
            server_default="pending",
            nullable=False,
        ),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "submitted_at",
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
        sa.PrimaryKeyConstraint("admission_id"),
    )
    op.create_index("ix_applicants_email", "applicants", ["email"])
    op.create_index("ix_applicants_status", "applicants", ["applicant_status"])
    op.create_index("ix_applicants_preferred_course", "applicants", ["preferred_course"])
    op.create_index("ix_applicants_submitted_at", "applicants", ["submitted_at"])

    op.create_table(
        "applicant_documents",
        sa.Column("upload_id", sa.String(length=40), nullable=False),
        sa.Column("admission_id", sa.String(length=20), nullable=False),
        sa.Column("document_type", document_type_enum, nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["admission_id"],
            ["applicants.admission_id"],
            name="fk_applicant_documents_admission_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("upload_id"),
    )
    op.create_index(
        "ix_applicant_documents_admission_type_uploaded",
        "applicant_documents",
        ["admission_id", "document_type", "uploaded_at"],
    )

    op.create_table(
        "applicant_notifications",
        sa.Column("notification_id", sa.String(length=36), nullable=False),
        sa.Column("admission_id", sa.String(length=20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type_enum, nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["admission_id"],
            ["applicants.admission_id"],
            name="fk_applicant_notifications_admission_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("notification_id"),
    )
    op.create_index(
        "ix_applicant_notifications_admission_created",
        "applicant_notifications",
        ["admission_id", "created_at"],
    )

    op.create_table(
        "email_verifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("otp", sa.String(length=6), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_email_verifications_email"),
    )
    op.create_index("ix_email_verifications_expires_at", "email_verifications", ["expires_at"])


def downgrade() -> None:
    """Drop admissions tables and enum types."""
    op.drop_index("ix_email_verifications_expires_at", table_name="email_verifications")
    op.drop_table("email_verifications")

    op.drop_index(
        "ix_applicant_notifications_admission_created", table_name="applicant_notifications"
    )
    op.drop_table("applicant_notifications")

    op.drop_index("ix_applicant_documents_admission_type_uploaded", table_name="applicant_documents")
    op.drop_table("applicant_documents")

    op.drop_index("ix_applicants_submitted_at", table_name="applicants")
    op.drop_index("ix_applicants_preferred_course", table_name="applicants")
    op.drop_index("ix_applicants_status", table_name="applicants")
    op.drop_index("ix_applicants_email", table_name="applicants")
    op.drop_table("applicants")

    bind = op.get_bind()
    notification_type_enum.drop(bind, checkfirst=True)
    document_type_enum.drop(bind, checkfirst=True)
    applicant_status_enum.drop(bind, checkfirst=True)
