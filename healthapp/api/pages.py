"""
Route-level access gate for page paths and the per-area landing views.
"""

from flask import jsonify, redirect, request

from healthapp import store
from healthapp.api.auth import current_session
from healthapp.config import ROLE_AREAS
from healthapp.database import appointments, medical_records, prescriptions
from healthapp.rbac import build_policy, is_gated_path, is_public_path, page_redirect, scope_filters
from healthapp.stats import compute_inventory_summary, compute_stats


def _own_counts(engine, policy):
    filters = scope_filters(policy)
    return {
        "appointments": store.count_rows(engine, appointments, **filters),
        "upcomingAppointments": store.count_rows(engine, appointments, status="scheduled", **filters),
        "medicalRecords": store.count_rows(engine, medical_records, **filters),
        "prescriptions": store.count_rows(engine, prescriptions, **filters),
    }


def register_page_gate(app):
    """Install the page gate as a before_request hook on *app*."""

    @app.before_request
    def page_gate():
        path = request.path
        if not is_gated_path(path) or is_public_path(path):
            return None

        principal = current_session()
        target = page_redirect(path, principal)
        if target is not None:
            return redirect(target)

        request.principal = principal
        return None


def register_pages(app, engine):
    """Register the public auth pages and one dashboard view per role area."""

    @app.route("/auth/login", methods=["GET"])
    def login_page():
        return jsonify({"page": "login", "submit": "/api/auth/login"})

    @app.route("/auth/register", methods=["GET"])
    def register_page():
        return jsonify({"page": "register", "submit": "/api/auth/register"})

    def dashboard():
        principal = request.principal
        policy = build_policy(principal)

        if principal.role == "admin":
            summary = compute_stats(engine)
        elif principal.role == "pharmacist":
            summary = compute_inventory_summary(engine)
        else:
            summary = _own_counts(engine, policy)

        return jsonify({
            "area": policy.area,
            "user": {
                "id": principal.subject_id,
                "email": principal.email,
                "name": principal.display_name,
                "role": principal.role,
            },
            "policy": policy.notes,
            "summary": summary,
        })

    for role, area in ROLE_AREAS.items():
        app.add_url_rule(f"{area}/dashboard", endpoint=f"{role}_dashboard", view_func=dashboard)
