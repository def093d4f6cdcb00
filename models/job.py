"""Job posting model."""

from datetime import timedelta

from sqlalchemy import and_, or_

from utils.clock import utcnow

from . import db

JOB_STATUSES = ("ACTIVE", "FILLED", "CLOSED", "DRAFT")
COUNTED_JOB_STATUSES = ("ACTIVE", "FILLED")
LISTING_DURATION_DAYS = 45


class Job(db.Model):
    """A job listing posted by an employer or agency."""

    __tablename__ = "jobs"

    id = db.Column(db.Integer, primary_key=True)
    employer_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(200), nullable=True)
    status = db.Column(
        db.Enum(*JOB_STATUSES, name="job_status_enum", native_enum=False),
        nullable=False,
        default="ACTIVE",
        index=True,
    )
    expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    employer = db.relationship("User", backref=db.backref("jobs", lazy="dynamic"))

    def to_dict(self) -> dict:
        """Serialize the job to a dictionary."""

        return {
            "id": self.id,
            "employer_id": self.employer_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "status": self.status,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @staticmethod
    def default_expiry(now=None):
        return (now or utcnow()) + timedelta(days=LISTING_DURATION_DAYS)

    @staticmethod
    def active_filter(query, now=None):
        """Filter for open listings considering expiration."""

        now = now or utcnow()
        return query.filter(
            and_(
                Job.status == "ACTIVE",
                or_(Job.expires_at.is_(None), Job.expires_at >= now),
            )
        )
