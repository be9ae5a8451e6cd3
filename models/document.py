"""Document records written when an application is submitted."""

from . import db, utcnow


DOCUMENT_STATUSES = ("pending", "approved", "missing", "rejected")


class Document(db.Model):
    """A submitted application document awaiting or past admin review."""

    __tablename__ = "documents"
    __table_args__ = (
        db.UniqueConstraint(
            "application_id", "document_type", name="uq_documents_application_type"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer,
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type = db.Column(db.String(40), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.String(512), nullable=True)
    storage_key = db.Column(db.String(512), nullable=True)
    from_profile = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(
        db.Enum(*DOCUMENT_STATUSES, name="document_status_enum"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    admin_notes = db.Column(db.Text, nullable=True)
    uploaded_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    reviewed_at = db.Column(db.DateTime, nullable=True)

    application = db.relationship("Application", back_populates="documents")

    def __repr__(self) -> str:
        return (
            f"<Document id={self.id} application_id={self.application_id} "
            f"type={self.document_type} status={self.status}>"
        )

    def to_dict(self) -> dict:
        """Serialize the document into a dictionary."""

        return {
            "id": self.id,
            "application_id": self.application_id,
            "document_type": self.document_type,
            "name": self.name,
            "file_url": self.file_url,
            "from_profile": self.from_profile,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }
