"""User model definition."""

from werkzeug.security import check_password_hash, generate_password_hash

from . import db, utcnow


USER_ROLES = ("applicant", "admin")


class User(db.Model):
    """Represents a platform user together with their standing profile."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="applicant")
    full_name = db.Column(db.String(200), nullable=False, default="")
    phone = db.Column(db.String(40), nullable=True)
    country_of_origin = db.Column(db.String(120), nullable=True)
    desired_destination = db.Column(db.String(120), nullable=True)
    avatar_url = db.Column(db.String(512), nullable=True)
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("true"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    application = db.relationship(
        "Application",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def profile_dict(self) -> dict:
        """Serialize the standing profile fields."""

        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "full_name": self.full_name,
            "phone": self.phone,
            "country_of_origin": self.country_of_origin,
            "desired_destination": self.desired_destination,
            "avatar_url": self.avatar_url,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
