"""Employer profile model."""

from utils.clock import utcnow

from . import db


class EmployerProfile(db.Model):
    """Company details for an employer or agency account."""

    __tablename__ = "employer_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True
    )
    company_name = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="employer_profile")
    billing_records = db.relationship(
        "BillingRecord",
        back_populates="employer_profile",
        lazy="dynamic",
        order_by="BillingRecord.created_at.desc()",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_name": self.company_name,
            "role": self.user.role if self.user else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
