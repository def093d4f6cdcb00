"""Helpers for resolving the authenticated caller inside blueprints."""

from __future__ import annotations

from flask import current_app
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from werkzeug.exceptions import Forbidden, Unauthorized

from models import db
from models.user import User


def current_user(optional: bool = False) -> User | None:
    verify_jwt_in_request(optional=optional)
    identity = get_jwt_identity()
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def require_user() -> User:
    user = current_user()
    if user is None or not user.is_active:
        raise Unauthorized("Authentication required.")
    return user


def require_employer() -> User:
    """Return the caller if they are an employer or agency account."""

    user = require_user()
    if not user.is_employer:
        raise Forbidden("Employers and agencies only.")
    return user


def is_admin(user: User) -> bool:
    admin_email = current_app.config.get("ADMIN_EMAIL")
    return user.role == "admin" or bool(admin_email and user.email == admin_email)
