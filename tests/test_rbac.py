"""
Unit tests for RBAC – role areas, page routing policy and row scopes.
"""

import pytest

from healthapp.config import ROLE_AREAS, ROLES, get_env
from healthapp.models import Principal
from healthapp.rbac import (
    area_for_role,
    build_policy,
    check_role_areas,
    is_gated_path,
    is_public_path,
    landing_path,
    page_redirect,
    scope_filters,
)


def principal(role, subject_id="5"):
    return Principal(subject_id=subject_id, email=f"{role}@x.com", role=role, display_name=role)


# ── Tests: get_env ───────────────────────────────────────────────────

def test_get_env_ok(monkeypatch):
    monkeypatch.setenv("X", "123")
    assert get_env("X") == "123"


def test_get_env_missing_exits(monkeypatch, capsys):
    monkeypatch.delenv("MISSING_ENV", raising=False)
    with pytest.raises(SystemExit) as e:
        get_env("MISSING_ENV")
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "ERROR: env var MISSING_ENV is not set" in err


# ── Tests: role areas ────────────────────────────────────────────────

def test_every_role_has_distinct_non_empty_area():
    areas = [area_for_role(r) for r in ROLES]
    assert all(areas)
    assert len(set(areas)) == len(ROLES)


def test_role_area_map_values():
    assert ROLE_AREAS == {
        "patient": "/patient",
        "doctor": "/doctor",
        "admin": "/admin",
        "pharmacist": "/pharmacist",
    }


def test_check_role_areas_rejects_missing_role():
    areas = dict(ROLE_AREAS)
    del areas["pharmacist"]
    with pytest.raises(ValueError, match="No area configured"):
        check_role_areas(areas)


def test_check_role_areas_rejects_shared_area():
    areas = dict(ROLE_AREAS, pharmacist="/admin")
    with pytest.raises(ValueError, match="must not overlap"):
        check_role_areas(areas)


def test_check_role_areas_rejects_unknown_role():
    areas = dict(ROLE_AREAS, nurse="/nurse")
    with pytest.raises(ValueError, match="unknown role"):
        check_role_areas(areas)


def test_area_for_unknown_role_is_an_error():
    with pytest.raises(ValueError, match="Unknown role"):
        area_for_role("nurse")


def test_landing_path():
    assert landing_path("doctor") == "/doctor/dashboard"


# ── Tests: path classification ───────────────────────────────────────

@pytest.mark.parametrize("path", ["/", "/auth/login", "/auth/register", "/auth/login/help"])
def test_public_paths(path):
    assert is_public_path(path)


@pytest.mark.parametrize("path", ["/admin", "/patient/dashboard", "/authx", "/auth"])
def test_non_public_paths(path):
    assert not is_public_path(path)


@pytest.mark.parametrize("path,gated", [
    ("/api/auth/me", False),
    ("/health", False),
    ("/static/app.css", False),
    ("/admin/dashboard", True),
    ("/apiary", True),
])
def test_gated_paths(path, gated):
    assert is_gated_path(path) is gated


# ── Tests: page_redirect ─────────────────────────────────────────────

def test_public_path_needs_no_session():
    assert page_redirect("/auth/login", None) is None


def test_missing_session_goes_to_login():
    assert page_redirect("/patient/dashboard", None) == "/auth/login"


def test_own_area_allowed():
    assert page_redirect("/doctor/dashboard", principal("doctor")) is None
    assert page_redirect("/doctor", principal("doctor")) is None


def test_doctor_in_admin_area_redirected_to_own_dashboard():
    assert page_redirect("/admin/staff", principal("doctor")) == "/doctor/dashboard"


def test_area_prefix_must_match_whole_segment():
    assert page_redirect("/patients-export", principal("patient")) == "/patient/dashboard"


# ── Tests: build_policy / scope_filters ──────────────────────────────

def test_patient_policy_scopes_by_patient_id():
    policy = build_policy(principal("patient", "9"))
    assert policy.scope_column == "patient_id"
    assert scope_filters(policy) == {"patient_id": 9}


def test_doctor_policy_scopes_by_doctor_id():
    policy = build_policy(principal("doctor", "3"))
    assert scope_filters(policy) == {"doctor_id": 3}


@pytest.mark.parametrize("role", ["admin", "pharmacist"])
def test_unscoped_roles(role):
    policy = build_policy(principal(role))
    assert not policy.is_scoped
    assert scope_filters(policy) == {}


def test_scope_column_override():
    policy = build_policy(principal("patient", "9"))
    assert scope_filters(policy, {"patient": "user_id"}) == {"user_id": 9}
