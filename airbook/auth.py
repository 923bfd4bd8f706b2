from functools import wraps

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from .errors import BadRequest, Conflict, Forbidden, Unauthorized
from .models import User
from .validation import json_body, parse_email
from . import db

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

MIN_PASSWORD_LENGTH = 6


# guard for routes that only some roles may call; 401 when logged out, 403 on wrong role
def roles_required(*roles):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized()
            if roles and current_user.role not in roles:
                raise Forbidden()
            return view(*args, **kwargs)
        return wrapped
    return decorator


def require_string_password(password) -> str:
    if not isinstance(password, str):
        raise BadRequest("Password must be a string")
    return password


def validate_password(password: str) -> str:
    require_string_password(password)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


# registration: plain customer accounts only, staff are created by an admin
@auth_bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    name = str(data.get("name") or "").strip()
    password = data.get("password") or ""
    if not name or not data.get("email") or not password:
        raise BadRequest("Name, email, and password are required")

    email = parse_email(data.get("email"))
    validate_password(password)
    if User.query.filter_by(email=email).first():
        raise Conflict("User with this email already exists")

    user = User(
        name=name,
        email=email,
        phone=str(data.get("phone") or "").strip(),
        role="user",
        status="active",
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    login_user(user)
    return jsonify({"success": True, "message": "Registration successful", "user": user.to_dict(full=False)})


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    email = str(data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        raise BadRequest("Email and password are required")
    require_string_password(password)

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        raise Unauthorized("Invalid credentials")
    if not login_user(user):
        raise Unauthorized("Account is inactive")

    return jsonify({"success": True, "message": "Login successful", "user": user.to_dict(full=False)})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out successfully"})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify({"success": True, "user": current_user.to_dict()})


# admin console gate
@auth_bp.route("/check")
@roles_required("admin", "support")
def check():
    return jsonify({"success": True, "data": current_user.to_dict(full=False)})
