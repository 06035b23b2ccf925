"""
Unit tests for dashboard statistics.
"""

import pandas as pd

from healthapp import store
from healthapp.database import appointments, medicines
from healthapp.stats import compute_inventory_summary, compute_stats, group_counts


# ── Tests: group_counts ──────────────────────────────────────────────

def test_group_counts_empty_df():
    assert group_counts(pd.DataFrame(), "role") == []


def test_group_counts_largest_first():
    df = pd.DataFrame({"role": ["patient", "doctor", "patient", None, "patient"]})
    assert group_counts(df, "role") == [
        {"_id": "patient", "count": 3},
        {"_id": "doctor", "count": 1},
    ]


# ── Tests: compute_stats ─────────────────────────────────────────────

def test_compute_stats(engine, make_user):
    patient = make_user("patient")
    doctor = make_user("doctor")
    make_user("patient")
    for status in ("scheduled", "scheduled", "completed"):
        store.insert_row(engine, appointments, {
            "patient_id": patient["id"], "doctor_id": doctor["id"],
            "date": pd.Timestamp("2030-01-01").to_pydatetime(),
            "time": "09:00", "status": status, "reason": "r",
        })

    stats = compute_stats(engine)
    assert stats["totalUsers"] == 3
    assert stats["totalAppointments"] == 3
    assert stats["totalPrescriptions"] == 0
    assert stats["usersByRole"][0] == {"_id": "patient", "count": 2}
    assert {"_id": "completed", "count": 1} in stats["appointmentsByStatus"]
    assert len(stats["recentAppointments"]) == 3


def test_compute_stats_on_empty_store(engine):
    stats = compute_stats(engine)
    assert stats["totalUsers"] == 0
    assert stats["usersByRole"] == []
    assert stats["recentAppointments"] == []


# ── Tests: compute_inventory_summary ─────────────────────────────────

def test_inventory_summary(engine):
    for name, category, price, stock in [
        ("A", "Vitamin", 2.0, 5),
        ("B", "Vitamin", 1.5, 100),
        ("C", "Painkiller", 10.0, 0),
    ]:
        store.insert_row(engine, medicines, {
            "name": name, "generic_name": name, "manufacturer": "M",
            "category": category, "price": price, "stock": stock, "side_effects": [],
        })

    summary = compute_inventory_summary(engine, low_stock_threshold=10)
    assert summary["totalMedicines"] == 3
    assert summary["totalUnits"] == 105
    assert summary["inventoryValue"] == 160.0
    assert summary["byCategory"][0] == {"_id": "Vitamin", "count": 2}
    assert [m["name"] for m in summary["lowStock"]] == ["C", "A"]


def test_inventory_summary_empty(engine):
    assert compute_inventory_summary(engine)["totalMedicines"] == 0
