"""Create the applicant portal schema."""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "portal_20261001"
down_revision = None
branch_labels = None
depends_on = None


APPLICATION_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "pending_documents",
    "approved",
    "job_matched",
    "visa_process",
    "completed",
)
PAYMENT_PLAN_TYPES = ("milestone", "full_upfront", "deferred")
APPLICATION_PAYMENT_STATUSES = ("unpaid", "partially_paid", "payment_complete")
DOCUMENT_TYPES = ("resume", "photo", "education", "experience", "passport", "other")
DOCUMENT_STATUSES = ("pending", "approved", "missing", "rejected")
PAYMENT_RECORD_STATUSES = ("pending", "completed", "failed", "refunded")
NOTIFICATION_AUDIENCES = ("user", "admin")
NOTIFICATION_TYPES = ("application", "document", "payment", "job", "system")
JOB_APPLICATION_STATUSES = ("applied", "pending", "interviewing", "accepted", "rejected")


def _enums():
    return {
        "application_status_enum": sa.Enum(
            *APPLICATION_STATUSES, name="application_status_enum"
        ),
        "payment_plan_enum": sa.Enum(*PAYMENT_PLAN_TYPES, name="payment_plan_enum"),
        "application_payment_status_enum": sa.Enum(
            *APPLICATION_PAYMENT_STATUSES, name="application_payment_status_enum"
        ),
        "document_type_enum": sa.Enum(*DOCUMENT_TYPES, name="document_type_enum"),
        "document_status_enum": sa.Enum(*DOCUMENT_STATUSES, name="document_status_enum"),
        "payment_status_enum": sa.Enum(*PAYMENT_RECORD_STATUSES, name="payment_status_enum"),
        "notification_audience_enum": sa.Enum(
            *NOTIFICATION_AUDIENCES, name="notification_audience_enum"
        ),
        "notification_type_enum": sa.Enum(
            *NOTIFICATION_TYPES, name="notification_type_enum"
        ),
        "job_application_status_enum": sa.Enum(
            *JOB_APPLICATION_STATUSES, name="job_application_status_enum"
        ),
    }


def upgrade():
    bind = op.get_bind()
    enums = _enums()
    for enum in enums.values():
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="applicant"),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("country_of_origin", sa.String(length=120), nullable=True),
        sa.Column("desired_destination", sa.String(length=120), nullable=True),
        sa.Column("avatar_url", sa.String(length=512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "profile_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_type", enums["document_type_enum"], nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("storage_key", sa.String(length=512), nullable=False),
        sa.Column("file_url", sa.String(length=512), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_profile_documents_user_id", "profile_documents", ["user_id"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "status",
            enums["application_status_enum"],
            nullable=False,
            server_default=sa.text("'draft'"),
        ),
        sa.Column("current_step", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("country_of_origin", sa.String(length=120), nullable=True),
        sa.Column("desired_destination", sa.String(length=120), nullable=True),
        sa.Column("visa_type", sa.String(length=80), nullable=True),
        sa.Column("payment_plan", enums["payment_plan_enum"], nullable=True),
        sa.Column("draft_documents", sa.JSON(), nullable=False),
        sa.Column("total_fee", sa.Numeric(10, 2), nullable=True),
        sa.Column("paid_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column(
            "payment_status",
            enums["application_payment_status_enum"],
            nullable=False,
            server_default=sa.text("'unpaid'"),
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.Integer(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_type", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("file_url", sa.String(length=512), nullable=True),
        sa.Column("storage_key", sa.String(length=512), nullable=True),
        sa.Column("from_profile", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "status",
            enums["document_status_enum"],
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "application_id", "document_type", name="uq_documents_application_type"
        ),
    )
    op.create_index("ix_documents_application_id", "documents", ["application_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.Integer(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("processing_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=40), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("milestone_name", sa.String(length=120), nullable=True),
        sa.Column(
            "status",
            enums["payment_status_enum"],
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("transaction_id", sa.String(length=255), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_payments_application_id", "payments", ["application_id"])
    op.create_index("ix_payments_user_id", "payments", ["user_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "audience",
            enums["notification_audience_enum"],
            nullable=False,
            server_default=sa.text("'user'"),
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "type",
            enums["notification_type_enum"],
            nullable=False,
            server_default=sa.text("'system'"),
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(length=255), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("job_type", sa.String(length=80), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("salary_min", sa.Numeric(12, 2), nullable=True),
        sa.Column("salary_max", sa.Numeric(12, 2), nullable=True),
        sa.Column("requirements", sa.JSON(), nullable=False),
        sa.Column("benefits", sa.JSON(), nullable=False),
        sa.Column("visa_sponsorship", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_jobs_category", "jobs", ["category"])
    op.create_index("ix_jobs_is_active", "jobs", ["is_active"])

    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column(
            "status",
            enums["job_application_status_enum"],
            nullable=False,
            server_default=sa.text("'applied'"),
        ),
        sa.Column("applied_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "job_id", name="uq_job_applications_user_job"),
    )
    op.create_index("ix_job_applications_user_id", "job_applications", ["user_id"])
    op.create_index("ix_job_applications_job_id", "job_applications", ["job_id"])

    op.create_table(
        "admin_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("setting_key", sa.String(length=120), nullable=False, unique=True),
        sa.Column("setting_value", sa.Text(), nullable=True),
        sa.Column("setting_type", sa.String(length=32), nullable=False, server_default="text"),
        sa.Column("is_secret", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table("admin_settings")

    op.drop_index("ix_job_applications_job_id", table_name="job_applications")
    op.drop_index("ix_job_applications_user_id", table_name="job_applications")
    op.drop_table("job_applications")

    op.drop_index("ix_jobs_is_active", table_name="jobs")
    op.drop_index("ix_jobs_category", table_name="jobs")
    op.drop_table("jobs")

    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_payments_user_id", table_name="payments")
    op.drop_index("ix_payments_application_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("ix_documents_application_id", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_table("applications")

    op.drop_index("ix_profile_documents_user_id", table_name="profile_documents")
    op.drop_table("profile_documents")

    op.drop_table("users")

    bind = op.get_bind()
    for enum in _enums().values():
        enum.drop(bind, checkfirst=True)
