from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy import or_

from .auth import roles_required, validate_password
from .errors import Conflict, Forbidden, NotFound
from .inventory import count_by_class, release_seats
from .models import User, USER_ROLES, USER_STATUSES
from .validation import (
    json_body, require_fields, parse_email, parse_date, parse_choice,
    pagination_args, paginate,
)
from . import db

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

REQUIRED_FIELDS = ("name", "email", "password", "phone", "role")
PROFILE_FIELDS = ("name", "phone", "nationality", "passport_number", "address", "preferred_seat", "meal_preference")


def user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def apply_profile(user: User, data: dict, as_admin: bool):
    for field in PROFILE_FIELDS:
        if field in data and data[field] is not None:
            setattr(user, field, str(data[field]).strip())
    if data.get("passport_expiry"):
        user.passport_expiry = parse_date(data["passport_expiry"], "passport_expiry")

    if data.get("email"):
        email = parse_email(data["email"])
        clash = User.query.filter(User.email == email, User.id != user.id).first()
        if clash:
            raise Conflict("Email already in use")
        user.email = email

    # role and status are an admin decision
    if as_admin:
        if data.get("role"):
            user.role = parse_choice(data["role"], "role", USER_ROLES)
        if data.get("status"):
            user.status = parse_choice(data["status"], "status", USER_STATUSES)

    if data.get("password"):
        user.set_password(validate_password(data["password"]))


@users_bp.route("", methods=["GET"])
@roles_required("admin", "support")
def list_users():
    q = User.query
    role = request.args.get("role")
    status = request.args.get("status")
    search = (request.args.get("search") or "").strip()

    if role:
        q = q.filter(User.role == role)
    if status:
        q = q.filter(User.status == status)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(User.name.ilike(like), User.email.ilike(like), User.phone.ilike(like)))

    q = q.order_by(User.registered_date.desc(), User.id.desc())
    page, limit = pagination_args()
    users, pagination = paginate(q, page, limit)
    return jsonify({"success": True, "users": [u.to_dict() for u in users], "pagination": pagination})


@users_bp.route("", methods=["POST"])
@roles_required("admin")
def create_user():
    data = json_body()
    require_fields(data, REQUIRED_FIELDS)

    email = parse_email(data["email"])
    if User.query.filter_by(email=email).first():
        raise Conflict("Email already in use")

    user = User(
        name=str(data["name"]).strip(),
        email=email,
        role=parse_choice(data["role"], "role", USER_ROLES),
        status=parse_choice(data.get("status") or "active", "status", USER_STATUSES),
    )
    apply_profile(user, {k: v for k, v in data.items() if k not in ("email", "role", "status")}, as_admin=False)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("User %s created with role %s", user.email, user.role)
    return jsonify({"success": True, "message": "User created successfully", "user": user.to_dict()}), 201


@users_bp.route("/<int:user_id>", methods=["GET"])
@login_required
def get_user(user_id: int):
    if not current_user.is_staff and user_id != current_user.id:
        raise Forbidden("Unauthorized to view this user")
    user = user_or_404(user_id)
    return jsonify({"success": True, "user": user.to_dict()})


@users_bp.route("/<int:user_id>", methods=["PUT"])
@login_required
def update_user(user_id: int):
    if not current_user.is_admin and user_id != current_user.id:
        raise Forbidden("Unauthorized to update this user")
    user = user_or_404(user_id)
    data = json_body()

    apply_profile(user, data, as_admin=current_user.is_admin)
    db.session.commit()
    return jsonify({"success": True, "message": "User updated successfully", "user": user.to_dict()})


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@roles_required("admin")
def delete_user(user_id: int):
    user = user_or_404(user_id)

    # their bookings go with them, so hand the seats back first
    for booking in user.bookings:
        if booking.status != "Cancelled" and booking.flight:
            release_seats(booking.flight, count_by_class(booking.passengers))

    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("User %s deleted", user.email)
    return jsonify({"success": True, "message": "User deleted successfully"})
