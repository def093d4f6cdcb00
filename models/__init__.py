"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .employer_profile import EmployerProfile  # noqa: E402,F401
from .employer_subscription import (  # noqa: E402,F401
    EmployerSubscription,
    RenewalPeriod,
    SubscriptionType,
)
from .billing_record import BillingRecord, BillingStatus  # noqa: E402,F401
from .job import Job  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "EmployerProfile",
    "EmployerSubscription",
    "RenewalPeriod",
    "SubscriptionType",
    "BillingRecord",
    "BillingStatus",
    "Job",
]
