"""
Domain dataclasses used across the application.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    """The identity and role carried by a verified session token."""
    subject_id: str
    email: str
    role: str                  # "patient", "doctor", "admin" or "pharmacist"
    display_name: str

    @property
    def user_id(self) -> int:
        return int(self.subject_id)


@dataclass
class Policy:
    """Row-level scope derived from a Principal."""
    role: str
    area: str
    scope_column: Optional[str]   # column that must equal scope_value
    scope_value: Optional[int]
    notes: str

    @property
    def is_scoped(self) -> bool:
        return self.scope_column is not None
