"""
System-wide statistics for the admin and pharmacist dashboards.
"""

from typing import Any, Dict, List

import pandas as pd
from sqlalchemy import select

from healthapp import serializers, store
from healthapp.config import LOW_STOCK_THRESHOLD, RECENT_APPOINTMENTS_LIMIT
from healthapp.database import appointments, medical_records, medicines, prescriptions, users


def load_frame(engine, table, *columns: str) -> pd.DataFrame:
    """Read the given columns of *table* into a DataFrame."""
    stmt = select(*(table.c[c] for c in columns))
    with engine.connect() as conn:
        return pd.read_sql_query(stmt, conn)


def group_counts(df: pd.DataFrame, column: str) -> List[Dict[str, Any]]:
    """
    Row counts per distinct value of *column*, largest first, as
    ``[{"_id": value, "count": n}, ...]``.
    """
    if df.empty or column not in df.columns:
        return []
    vc = df[column].dropna().value_counts()
    return [{"_id": str(value), "count": int(count)} for value, count in vc.items()]


def compute_stats(engine) -> Dict[str, Any]:
    recent = store.fetch_all(
        engine, appointments,
        order_by=appointments.c.created_at.desc(),
        limit=RECENT_APPOINTMENTS_LIMIT,
    )
    return {
        "totalUsers": store.count_rows(engine, users),
        "totalAppointments": store.count_rows(engine, appointments),
        "totalPrescriptions": store.count_rows(engine, prescriptions),
        "totalRecords": store.count_rows(engine, medical_records),
        "usersByRole": group_counts(load_frame(engine, users, "role"), "role"),
        "appointmentsByStatus": group_counts(load_frame(engine, appointments, "status"), "status"),
        "recentAppointments": [serializers.appointment_to_dict(a) for a in recent],
    }


def compute_inventory_summary(engine, low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> Dict[str, Any]:
    """Stock levels, inventory value and low-stock items for pharmacists."""
    df = load_frame(engine, medicines, "id", "name", "category", "price", "stock")
    if df.empty:
        return {
            "totalMedicines": 0,
            "totalUnits": 0,
            "inventoryValue": 0.0,
            "byCategory": [],
            "lowStock": [],
        }

    low = df[df["stock"] <= low_stock_threshold].sort_values("stock")
    return {
        "totalMedicines": int(len(df)),
        "totalUnits": int(df["stock"].sum()),
        "inventoryValue": round(float((df["price"] * df["stock"]).sum()), 2),
        "byCategory": group_counts(df, "category"),
        "lowStock": [
            {"_id": str(r.id), "name": r.name, "stock": int(r.stock)}
            for r in low.itertuples(index=False)
        ],
    }
