"""
Role-Based Access Control – role areas, page routing policy and row scopes.
"""

from typing import Dict, Optional

from healthapp.config import LOGIN_PATH, PUBLIC_PATHS, ROLE_AREAS, ROLES, UNGATED_PREFIXES
from healthapp.models import Policy, Principal


def check_role_areas(role_areas: Dict[str, str] = ROLE_AREAS) -> None:
    """Fail fast unless every role maps to its own non-empty area prefix."""
    missing = [r for r in ROLES if not role_areas.get(r)]
    if missing:
        raise ValueError(f"No area configured for role(s): {', '.join(missing)}")

    unknown = set(role_areas) - set(ROLES)
    if unknown:
        raise ValueError(f"Area configured for unknown role(s): {', '.join(sorted(unknown))}")

    prefixes = [role_areas[r] for r in ROLES]
    if len(set(prefixes)) != len(prefixes):
        raise ValueError("Role areas must not overlap.")


check_role_areas()


def area_for_role(role: str) -> str:
    try:
        return ROLE_AREAS[role]
    except KeyError:
        raise ValueError(f"Unknown role: {role}") from None


def landing_path(role: str) -> str:
    """Default page for a role: its area's dashboard."""
    return area_for_role(role) + "/dashboard"


def is_gated_path(path: str) -> bool:
    """Page paths go through the route gate; API, assets and probes do not."""
    return not any(path == p or path.startswith(p + "/") for p in UNGATED_PREFIXES)


def is_public_path(path: str) -> bool:
    # "/" is matched exactly, otherwise it would prefix-match every path.
    if path == "/":
        return True
    return any(path.startswith(p) for p in PUBLIC_PATHS)


def in_area(path: str, area: str) -> bool:
    return path == area or path.startswith(area + "/")


def page_redirect(path: str, principal: Optional[Principal]) -> Optional[str]:
    """
    Decide where a page request must go instead of *path*.
    Returns None when the request may proceed.
    """
    if is_public_path(path):
        return None
    if principal is None:
        return LOGIN_PATH

    area = area_for_role(principal.role)
    if not in_area(path, area):
        return landing_path(principal.role)
    return None


# ── Row-level policy ─────────────────────────────────────────────────

def build_policy(principal: Principal) -> Policy:
    """Derive the row-level scope from a Principal."""

    if principal.role == "patient":
        return Policy(
            role="patient",
            area=area_for_role("patient"),
            scope_column="patient_id",
            scope_value=principal.user_id,
            notes="Patients only see their own appointments, records and prescriptions.",
        )

    if principal.role == "doctor":
        return Policy(
            role="doctor",
            area=area_for_role("doctor"),
            scope_column="doctor_id",
            scope_value=principal.user_id,
            notes="Doctors only see appointments, records and prescriptions assigned to them.",
        )

    if principal.role in ("admin", "pharmacist"):
        return Policy(
            role=principal.role,
            area=area_for_role(principal.role),
            scope_column=None,
            scope_value=None,
            notes="No row-level scope.",
        )

    raise ValueError(f"Unknown role: {principal.role}")


def scope_filters(policy: Policy, columns: Optional[Dict[str, str]] = None) -> Dict[str, int]:
    """
    Equality filters enforcing the policy's row scope.
    *columns* overrides the scoped column per role for collections that name
    the owner differently (e.g. payments.user_id).
    """
    if not policy.is_scoped:
        return {}
    column = (columns or {}).get(policy.role, policy.scope_column)
    return {column: policy.scope_value}
