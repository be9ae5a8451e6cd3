"""Notification model."""

from . import db, utcnow


NOTIFICATION_TYPES = ("application", "document", "payment", "job", "system")
NOTIFICATION_AUDIENCES = ("user", "admin")


class Notification(db.Model):
    """A message for one applicant, or for the admin team when ``audience`` is admin."""

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    audience = db.Column(
        db.Enum(*NOTIFICATION_AUDIENCES, name="notification_audience_enum"),
        nullable=False,
        default="user",
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type = db.Column(
        db.Enum(*NOTIFICATION_TYPES, name="notification_type_enum"),
        nullable=False,
        default="system",
    )
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    link = db.Column(db.String(255), nullable=True)
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "audience": self.audience,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "link": self.link,
            "read": self.read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
