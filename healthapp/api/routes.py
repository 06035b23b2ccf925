"""
Flask route handlers: service info, authentication, profile and errors.
"""

import sys
import traceback

from flask import jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from healthapp import serializers, store
from healthapp.api.admin import register_admin_routes
from healthapp.api.auth import (
    TOKEN_LIFETIME,
    clear_session,
    establish_session,
    issue_token,
    principal_from_user,
    require_session,
)
from healthapp.api.common import json_body, require_fields, require_strings
from healthapp.api.resources import register_resource_routes
from healthapp.config import ROLES, SELF_REGISTER_ROLES
from healthapp.database import ping, users
from healthapp.errors import ApiError, NotFoundError, UnauthorizedError, ValidationError
from healthapp.passwords import hash_password, verify_password

PROFILE_FIELDS = {
    "name": "name",
    "phone": "phone",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "address": "address",
    "specialization": "specialization",
    "department": "department",
    "allergies": "allergies",
    "bloodGroup": "blood_group",
    "medicalHistory": "medical_history",
    "emergencyContact": "emergency_contact",
}


def _session_response(user, status=200):
    """JSON user summary plus a fresh session cookie for *user*."""
    if user["role"] not in ROLES:
        raise ValueError(f"Unsupported role '{user['role']}' for user {user['id']}.")
    token = issue_token(principal_from_user(user))
    response = jsonify({"success": True, "user": serializers.user_summary(user)})
    response.status_code = status
    return establish_session(response, token)


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "HealthApp API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "login": "/api/auth/login",
                "register": "/api/auth/register",
                "me": "/api/auth/me",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        healthy = ping(engine)
        return jsonify({
            "status": "healthy" if healthy else "unhealthy",
            "checks": {"database": healthy},
            "session_lifetime_days": TOKEN_LIFETIME.days,
        }), 200 if healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        data = json_body()
        require_strings(data, "email", "password")
        email = str(data.get("email") or "").strip().lower()
        password = data.get("password") or ""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = store.find_user_by_email(engine, email)
        # Unknown email and wrong password are indistinguishable to the caller.
        if not user or not verify_password(password, user["password_hash"]):
            raise UnauthorizedError("Invalid credentials")

        print(f"[auth] Login: user {user['id']} (role={user['role']})")
        return _session_response(user)

    @app.route("/api/auth/register", methods=["POST"])
    def register():
        data = json_body()
        require_fields(data, "email", "password", "name", "role")
        require_strings(data, "email", "password", "name", "role", "phone", "dateOfBirth", "gender")

        email = str(data["email"]).strip().lower()
        role = data["role"]
        if role not in SELF_REGISTER_ROLES:
            raise ValidationError("Invalid role")
        if store.find_user_by_email(engine, email):
            raise ValidationError("User already exists")

        try:
            user_id = store.create_user(engine, {
                "email": email,
                "password_hash": hash_password(data["password"]),
                "name": data["name"],
                "role": role,
                "phone": data.get("phone"),
                "date_of_birth": data.get("dateOfBirth"),
                "gender": data.get("gender"),
            })
        except IntegrityError:
            raise ValidationError("User already exists") from None

        print(f"[auth] Registered user {user_id} (role={role})")
        return _session_response(store.find_user_by_id(engine, user_id))

    @app.route("/api/auth/logout", methods=["POST"])
    def logout():
        response = jsonify({"success": True, "message": "Logged out successfully"})
        return clear_session(response)

    @app.route("/api/auth/me", methods=["GET"])
    @require_session()
    def me():
        principal = request.principal
        user = store.find_user_by_id(engine, principal.user_id)
        if not user:
            raise NotFoundError("User not found")

        return jsonify({
            "user": {
                "id": principal.subject_id,
                "email": user["email"],
                "name": user["name"],
                # The session's role, fixed when the token was issued.
                "role": principal.role,
                "phone": user["phone"],
                "dateOfBirth": user["date_of_birth"],
                "gender": user["gender"],
                "address": user["address"],
                "profileImage": user["profile_image"],
                "specialization": user["specialization"],
                "licenseNumber": user["license_number"],
                "department": user["department"],
            },
        })

    # ── Profile ──────────────────────────────────────────────────────

    @app.route("/api/profile", methods=["GET"])
    @require_session()
    def get_profile():
        user = store.find_user_by_id(engine, request.principal.user_id)
        if not user:
            raise NotFoundError("User not found")
        return jsonify({"user": serializers.user_to_dict(user)})

    @app.route("/api/profile", methods=["PUT"])
    @require_session()
    def update_profile():
        user_id = request.principal.user_id
        data = json_body()
        require_strings(data, *PROFILE_FIELDS, "currentPassword", "newPassword")
        values = {column: data[key] for key, column in PROFILE_FIELDS.items() if data.get(key)}

        current_password = data.get("currentPassword")
        new_password = data.get("newPassword")
        if current_password and new_password:
            user = store.find_user_by_id(engine, user_id)
            if not user:
                raise NotFoundError("User not found")
            if not verify_password(current_password, user["password_hash"]):
                raise ValidationError("Current password is incorrect")
            values["password_hash"] = hash_password(new_password)

        if store.update_rows(engine, users, values, id=user_id) == 0:
            raise NotFoundError("User not found")

        return jsonify({
            "message": "Profile updated successfully",
            "user": serializers.user_to_dict(store.find_user_by_id(engine, user_id)),
        })

    # ── Resources ────────────────────────────────────────────────────

    register_resource_routes(app, engine)
    register_admin_routes(app, engine)

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(ApiError)
    def api_error(e):
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def internal_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.name}), e.code
        print(f"[ERROR] {request.method} {request.path} failed: {e}", file=sys.stderr)
        traceback.print_exc()
        return jsonify({"error": "Internal server error"}), 500
