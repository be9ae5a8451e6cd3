"""Job and job application models."""

from decimal import Decimal

from sqlalchemy import or_

from . import db, utcnow

JOB_APPLICATION_STATUSES = ("applied", "pending", "interviewing", "accepted", "rejected")


def format_salary(salary_min, salary_max) -> str:
    """Human readable salary range label."""

    if not salary_min and not salary_max:
        return "Competitive"
    if salary_min and salary_max:
        return f"${salary_min:,.0f} - ${salary_max:,.0f}"
    if salary_min:
        return f"From ${salary_min:,.0f}"
    return f"Up to ${salary_max:,.0f}"


class Job(db.Model):
    """A job opening offered through the placement programme."""

    __tablename__ = "jobs"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    company = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(120), nullable=True, index=True)
    job_type = db.Column(db.String(80), nullable=True)
    description = db.Column(db.Text, nullable=True)
    salary_min = db.Column(db.Numeric(12, 2), nullable=True)
    salary_max = db.Column(db.Numeric(12, 2), nullable=True)
    requirements = db.Column(db.JSON, nullable=False, default=list)
    benefits = db.Column(db.JSON, nullable=False, default=list)
    visa_sponsorship = db.Column(db.Boolean, nullable=False, default=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    applications = db.relationship(
        "JobApplication",
        back_populates="job",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def to_dict(self) -> dict:
        """Serialize the job to a dictionary."""

        salary_min = (
            float(self.salary_min) if isinstance(self.salary_min, Decimal) else self.salary_min
        )
        salary_max = (
            float(self.salary_max) if isinstance(self.salary_max, Decimal) else self.salary_max
        )
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "category": self.category,
            "job_type": self.job_type,
            "description": self.description,
            "salary_min": salary_min,
            "salary_max": salary_max,
            "salary_label": format_salary(salary_min, salary_max),
            "requirements": list(self.requirements or []),
            "benefits": list(self.benefits or []),
            "visa_sponsorship": self.visa_sponsorship,
            "is_featured": self.is_featured,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @staticmethod
    def search_filter(query, term: str):
        """Case-insensitive match on title, company or description."""

        like = f"%{term.lower()}%"
        return query.filter(
            or_(
                db.func.lower(Job.title).like(like),
                db.func.lower(Job.company).like(like),
                db.func.lower(Job.description).like(like),
            )
        )


class JobApplication(db.Model):
    """Represents an applicant's interest in a specific job."""

    __tablename__ = "job_applications"
    __table_args__ = (
        db.UniqueConstraint("user_id", "job_id", name="uq_job_applications_user_job"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=False, index=True)
    cover_letter = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.Enum(*JOB_APPLICATION_STATUSES, name="job_application_status_enum"),
        nullable=False,
        default="applied",
    )
    applied_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    job = db.relationship("Job", back_populates="applications")
    applicant = db.relationship(
        "User", backref=db.backref("job_applications", lazy="dynamic")
    )

    def to_dict(self, include_job: bool = False) -> dict:
        """Serialize the job application."""

        data = {
            "id": self.id,
            "user_id": self.user_id,
            "job_id": self.job_id,
            "cover_letter": self.cover_letter,
            "status": self.status,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
        }
        if include_job and self.job is not None:
            data["job"] = {
                "title": self.job.title,
                "company": self.job.company,
                "location": self.job.location,
            }
        return data
