"""Key/value settings managed from the admin console."""

from . import db, utcnow


class AdminSetting(db.Model):
    __tablename__ = "admin_settings"

    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(120), nullable=False, unique=True)
    setting_value = db.Column(db.Text, nullable=True)
    setting_type = db.Column(db.String(32), nullable=False, default="text")
    is_secret = db.Column(db.Boolean, nullable=False, default=False)
    description = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self, reveal_secret: bool = False) -> dict:
        value = self.setting_value
        if self.is_secret and value and not reveal_secret:
            value = "*" * 8
        return {
            "id": self.id,
            "setting_key": self.setting_key,
            "setting_value": value,
            "setting_type": self.setting_type,
            "is_secret": self.is_secret,
            "description": self.description,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
