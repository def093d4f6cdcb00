"""Bootstrap demo data for local development."""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import db
from models.employer_profile import EmployerProfile
from models.employer_subscription import EmployerSubscription, SubscriptionType
from models.job import Job
from models.user import User
from utils.services import subscription_service


@dataclass
class CreatedRecords:
    """Container for created or updated record identifiers."""

    admin_id: int
    employer_id: int
    agency_id: int
    professional_id: int
    job_id: int


ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123"
EMPLOYER_EMAIL = "boss@example.com"
EMPLOYER_PASSWORD = "BossPass123"
AGENCY_EMAIL = "agency@example.com"
AGENCY_PASSWORD = "AgencyPass123"
PROFESSIONAL_EMAIL = "talent@example.com"
PROFESSIONAL_PASSWORD = "TalentPass123"
JOB_TITLE = "Seasonal Hospitality Associate"


def get_or_create_user(email: str, password: str, role: str) -> User:
    """Create or update a user with the provided credentials."""

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, role=role)
        db.session.add(user)
    else:
        user.role = role
    user.set_password(password)
    return user


def ensure_employer(user: User, company_name: str) -> None:
    """Give a hiring account a profile and a trial, once."""

    if user.employer_profile is None:
        db.session.add(EmployerProfile(user_id=user.id, company_name=company_name))
    new_subscription = user.subscription is None
    if new_subscription:
        db.session.add(EmployerSubscription(user_id=user.id))
    db.session.commit()
    if new_subscription:
        subscription_service().initialize_trial_subscription(user.id, user.role)


def create_job(owner_id: int) -> Job:
    """Ensure an open job exists for the employer."""

    job = Job.query.filter_by(title=JOB_TITLE, employer_id=owner_id).first()
    if job is None:
        job = Job(
            employer_id=owner_id,
            title=JOB_TITLE,
            description=(
                "Join our hospitality team for the upcoming season. "
                "Provide excellent guest experiences and support daily operations."
            ),
            location="Denver, CO",
            status="ACTIVE",
            expires_at=Job.default_expiry(),
        )
        db.session.add(job)
        db.session.flush()
        subscription_service().handle_job_posting(owner_id)
    return job


def bootstrap() -> CreatedRecords:
    """Bootstrap the demo records and return their identifiers."""

    app = create_app()
    with app.app_context():
        db.create_all()

        admin = get_or_create_user(ADMIN_EMAIL, ADMIN_PASSWORD, "admin")
        employer = get_or_create_user(EMPLOYER_EMAIL, EMPLOYER_PASSWORD, "employer")
        agency = get_or_create_user(AGENCY_EMAIL, AGENCY_PASSWORD, "agency")
        professional = get_or_create_user(
            PROFESSIONAL_EMAIL, PROFESSIONAL_PASSWORD, "professional"
        )
        db.session.commit()

        ensure_employer(employer, "Summit Hospitality Group")
        ensure_employer(agency, "Coastline Staffing")

        # Employers start without credits; give the demo one a Bundle.
        service = subscription_service()
        if service.get_record(employer.id).job_credits == 0:
            service.update_employer_subscription(employer.id, SubscriptionType.BUNDLE)

        job = create_job(owner_id=employer.id)

        return CreatedRecords(
            admin_id=admin.id,
            employer_id=employer.id,
            agency_id=agency.id,
            professional_id=professional.id,
            job_id=job.id,
        )


if __name__ == "__main__":
    records = bootstrap()
    print(json.dumps(asdict(records)))
