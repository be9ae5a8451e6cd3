"""Payment model."""

from decimal import Decimal

from . import db, utcnow


PAYMENT_RECORD_STATUSES = ("pending", "completed", "failed", "refunded")


class Payment(db.Model):
    """A single payment attempt against an application's balance."""

    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer,
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    processing_fee = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(40), nullable=False)
    installment_number = db.Column(db.Integer, nullable=False, default=1)
    milestone_name = db.Column(db.String(120), nullable=True)
    status = db.Column(
        db.Enum(*PAYMENT_RECORD_STATUSES, name="payment_status_enum"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    transaction_id = db.Column(db.String(255), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)

    application = db.relationship("Application", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "amount": float(self.amount),
            "processing_fee": float(self.processing_fee),
            "total_amount": float(self.total_amount),
            "payment_method": self.payment_method,
            "installment_number": self.installment_number,
            "milestone_name": self.milestone_name,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }
