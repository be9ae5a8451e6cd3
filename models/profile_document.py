"""Documents kept on a user's standing profile."""

from . import db, utcnow


DOCUMENT_TYPES = ("resume", "photo", "education", "experience", "passport", "other")


class ProfileDocument(db.Model):
    """A file the user keeps on their profile and can reuse in an application."""

    __tablename__ = "profile_documents"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type = db.Column(
        db.Enum(*DOCUMENT_TYPES, name="document_type_enum"), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    storage_key = db.Column(db.String(512), nullable=False)
    file_url = db.Column(db.String(512), nullable=False)
    uploaded_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship(
        "User",
        backref=db.backref("profile_documents", lazy="dynamic", cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "name": self.name,
            "file_url": self.file_url,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
