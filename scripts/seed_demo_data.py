"""Seed a demo applicant and a handful of job openings."""

from decimal import Decimal

from app import create_app
from models import db
from models.job import Job
from models.user import User


def get_or_create_user(email: str, password: str, full_name: str, **profile) -> User:
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, role="applicant", full_name=full_name, **profile)
        db.session.add(user)
    else:
        user.full_name = full_name
        for key, value in profile.items():
            setattr(user, key, value)
    user.set_password(password)
    return user


JOBS = [
    {
        "title": "Registered Nurse",
        "company": "Lakeside General Hospital",
        "location": "Chicago, IL",
        "category": "Healthcare",
        "job_type": "Full-time",
        "description": "Acute care nursing on a medical-surgical ward.",
        "salary_min": Decimal("68000"),
        "salary_max": Decimal("82000"),
        "requirements": ["Nursing degree", "NCLEX eligibility", "English B2"],
        "benefits": ["Visa sponsorship", "Relocation support", "Health insurance"],
        "is_featured": True,
    },
    {
        "title": "Home Care Aide",
        "company": "Carewell Home Services",
        "location": "Austin, TX",
        "category": "Caregiving",
        "job_type": "Full-time",
        "description": "Support elderly clients with daily living at home.",
        "salary_min": Decimal("32000"),
        "salary_max": None,
        "requirements": ["Caregiving experience", "First aid certificate"],
        "benefits": ["Visa sponsorship", "Paid training"],
        "is_featured": False,
    },
    {
        "title": "Hotel Line Cook",
        "company": "Harbor View Resort",
        "location": "Miami, FL",
        "category": "Hospitality",
        "job_type": "Seasonal",
        "description": "Prepare breakfast and lunch service for a 300 room resort.",
        "salary_min": None,
        "salary_max": None,
        "requirements": ["Two years kitchen experience"],
        "benefits": ["Staff housing"],
        "is_featured": False,
    },
]


def main() -> None:
    app = create_app()
    with app.app_context():
        get_or_create_user(
            "applicant@example.com",
            "ApplicantPass123",
            "Demo Applicant",
            phone="+63 912 555 0101",
            country_of_origin="Philippines",
            desired_destination="USA",
        )

        for data in JOBS:
            job = Job.query.filter_by(title=data["title"], company=data["company"]).first()
            if job is None:
                db.session.add(Job(**data))
            else:
                for key, value in data.items():
                    setattr(job, key, value)
        db.session.commit()

        print(f"Seed data inserted: demo applicant, {len(JOBS)} jobs.")


if __name__ == "__main__":
    main()
