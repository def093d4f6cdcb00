"""Authentication blueprint providing register and login endpoints."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token
from werkzeug.exceptions import BadRequest, Conflict, Unauthorized
from sqlalchemy import func

from models import db
from models.user import USER_ROLES, User
from utils.request_validation import parse_json_request

DEFAULT_ROLE = "professional"
auth_bp = Blueprint("auth", __name__)


def _normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def _user_payload(user: User) -> dict:
    return {"id": user.id, "email": user.email, "role": user.role}


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user with an email, password, and optional role."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()
    role = (payload.get("role") or "").strip().lower() or DEFAULT_ROLE

    if not email or not password:
        raise BadRequest("Email and password are required.")
    if role not in USER_ROLES or role == "admin":
        raise BadRequest("Role must be one of: professional, employer, agency.")

    # Case-insensitive unique check
    existing = User.query.filter(func.lower(User.email) == email).first()
    if existing is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    return (
        jsonify({"message": "User registered successfully.", "user": _user_payload(user)}),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()

    if not email or not password:
        raise BadRequest("Email and password are required.")

    user = User.query.filter(func.lower(User.email) == email).first()
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password.")
    if not user.is_active:
        raise Unauthorized("Account is disabled.")

    token = create_access_token(identity=str(user.id))
    return (
        jsonify({"access_token": token, "user": _user_payload(user)}),
        HTTPStatus.OK,
    )
