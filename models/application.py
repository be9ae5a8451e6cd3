"""Immigration application model, covering both the draft and submitted states."""

from decimal import Decimal

from . import db, utcnow


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
PAYMENT_STATUSES = ("unpaid", "partially_paid", "payment_complete")

# Fields the applicant edits through the wizard.
DRAFT_FIELDS = (
    "full_name",
    "email",
    "phone",
    "country_of_origin",
    "desired_destination",
    "visa_type",
    "payment_plan",
)


def _money(value) -> float | None:
    if value is None:
        return None
    return float(value) if isinstance(value, Decimal) else value


class Application(db.Model):
    """One immigration application per user.

    While ``status`` is ``draft`` the row is the wizard's autosaved draft and
    ``draft_documents`` holds the attached uploads. Submission snapshots the
    draft and writes one :class:`Document` row per attached upload.
    """

    __tablename__ = "applications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = db.Column(
        db.Enum(*APPLICATION_STATUSES, name="application_status_enum"),
        nullable=False,
        default="draft",
        server_default=db.text("'draft'"),
    )
    current_step = db.Column(db.Integer, nullable=False, default=1)

    full_name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    country_of_origin = db.Column(db.String(120), nullable=True)
    desired_destination = db.Column(db.String(120), nullable=True)
    visa_type = db.Column(db.String(80), nullable=True)
    payment_plan = db.Column(
        db.Enum(*PAYMENT_PLAN_TYPES, name="payment_plan_enum"), nullable=True
    )
    draft_documents = db.Column(db.JSON, nullable=False, default=list)

    total_fee = db.Column(db.Numeric(10, 2), nullable=True)
    paid_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="application_payment_status_enum"),
        nullable=False,
        default="unpaid",
        server_default=db.text("'unpaid'"),
    )
    notes = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    submitted_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", back_populates="application")
    documents = db.relationship(
        "Document",
        back_populates="application",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )
    payments = db.relationship(
        "Payment",
        back_populates="application",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @property
    def is_draft(self) -> bool:
        return self.status == "draft"

    @property
    def balance_due(self) -> Decimal:
        """``total_fee - paid_amount``; zero before a fee is set."""

        if self.total_fee is None:
            return Decimal("0")
        return Decimal(self.total_fee) - Decimal(self.paid_amount or 0)

    def draft_dict(self) -> dict:
        """Serialize the wizard-facing view of the application."""

        data = {field: getattr(self, field) for field in DRAFT_FIELDS}
        data.update(
            {
                "id": self.id,
                "status": self.status,
                "current_step": self.current_step,
                "documents": list(self.draft_documents or []),
                "version": self.version,
            }
        )
        return data

    def to_dict(self) -> dict:
        """Serialize the application for dashboards and admin screens."""

        data = self.draft_dict()
        data.update(
            {
                "user_id": self.user_id,
                "total_fee": _money(self.total_fee),
                "paid_amount": _money(self.paid_amount),
                "balance_due": _money(self.balance_due),
                "payment_status": self.payment_status,
                "notes": self.notes,
                "created_at": self.created_at.isoformat() if self.created_at else None,
                "updated_at": self.updated_at.isoformat() if self.updated_at else None,
                "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            }
        )
        return data
