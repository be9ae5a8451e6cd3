"""Database initialization and model exports."""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Naive UTC timestamp used for every DateTime column."""

    return datetime.now(UTC).replace(tzinfo=None)


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .profile_document import ProfileDocument  # noqa: E402,F401
from .application import Application  # noqa: E402,F401
from .document import Document  # noqa: E402,F401
from .payment import Payment  # noqa: E402,F401
from .notification import Notification  # noqa: E402,F401
from .job import Job, JobApplication  # noqa: E402,F401
from .admin_setting import AdminSetting  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "User",
    "ProfileDocument",
    "Application",
    "Document",
    "Payment",
    "Notification",
    "Job",
    "JobApplication",
    "AdminSetting",
]
