"""
Admin-only handlers: staff accounts, user directory, appointments overview
and system statistics.
"""

from flask import jsonify, request
from sqlalchemy.exc import IntegrityError

from healthapp import serializers, store
from healthapp.api.auth import require_session
from healthapp.api.common import json_body, optional_id, parse_id, require_fields, require_strings
from healthapp.api.resources import populate_appointments
from healthapp.config import ROLES, STAFF_ROLES
from healthapp.database import appointments, hospitals, users
from healthapp.errors import NotFoundError, ValidationError
from healthapp.passwords import hash_password
from healthapp.stats import compute_stats

ADMIN_ONLY = "Unauthorized - Admin only"


def register_admin_routes(app, engine):
    """Register the admin handlers on the Flask *app*."""

    @app.route("/api/admin/staff", methods=["POST"])
    @require_session("admin", message=ADMIN_ONLY)
    def create_staff():
        data = json_body()
        require_fields(data, "email", "password", "name", "role")
        require_strings(
            data, "email", "password", "name", "role", "phone", "dateOfBirth", "gender",
            "specialization", "licenseNumber", "department",
        )

        role = data["role"]
        if role not in STAFF_ROLES:
            raise ValidationError("Invalid role. Only doctor and pharmacist allowed")

        email = str(data["email"]).strip().lower()
        if store.find_user_by_email(engine, email):
            raise ValidationError("User already exists")

        hospital_id = optional_id(data.get("hospitalId"))
        if hospital_id is not None and not store.fetch_one(engine, hospitals, id=hospital_id):
            raise NotFoundError("Hospital not found")

        try:
            user_id = store.create_user(engine, {
                "email": email,
                "password_hash": hash_password(data["password"]),
                "name": data["name"],
                "role": role,
                "phone": data.get("phone"),
                "date_of_birth": data.get("dateOfBirth"),
                "gender": data.get("gender"),
                "specialization": data.get("specialization"),
                "license_number": data.get("licenseNumber"),
                "department": data.get("department"),
                "hospital_id": hospital_id,
            })
        except IntegrityError:
            raise ValidationError("User already exists") from None

        print(f"[admin] Staff account {user_id} created (role={role})")
        user = store.find_user_by_id(engine, user_id)
        return jsonify({"success": True, "user": serializers.user_summary(user)})

    @app.route("/api/admin/staff", methods=["GET"])
    @require_session("admin")
    def list_staff():
        rows = store.fetch_all(
            engine, users, conditions=[users.c.role.in_(STAFF_ROLES)], order_by=users.c.name,
        )
        return jsonify({"staff": [serializers.user_to_dict(r) for r in rows]})

    @app.route("/api/admin/users", methods=["GET"])
    @require_session("admin")
    def list_users():
        filters = {}
        role = request.args.get("role")
        if role:
            if role not in ROLES:
                raise ValidationError("Invalid role")
            filters["role"] = role
        rows = store.fetch_all(engine, users, filters, order_by=users.c.created_at.desc())
        return jsonify({"users": [serializers.user_to_dict(r) for r in rows]})

    @app.route("/api/admin/users", methods=["DELETE"])
    @require_session("admin")
    def delete_user():
        user_id = parse_id(request.args.get("id"), "User id is required")
        if user_id == request.principal.user_id:
            raise ValidationError("Cannot delete your own account")
        if store.delete_rows(engine, users, id=user_id) == 0:
            raise NotFoundError("User not found")

        print(f"[admin] User {user_id} deleted by {request.principal.subject_id}")
        return jsonify({"success": True})

    @app.route("/api/admin/appointments", methods=["GET"])
    @require_session("admin")
    def admin_list_appointments():
        rows = store.fetch_all(engine, appointments, order_by=appointments.c.date.desc())
        return jsonify({"appointments": populate_appointments(engine, rows)})

    @app.route("/api/admin/stats", methods=["GET"])
    @require_session("admin")
    def admin_stats():
        return jsonify({"stats": compute_stats(engine)})
