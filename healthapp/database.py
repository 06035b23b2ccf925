"""
Database engine initialisation and collection tables.
"""

import sys
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)

from healthapp.config import DB_URI

metadata = MetaData()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every created_at/updated_at."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _timestamps():
    return [
        Column("created_at", DateTime, nullable=False, default=utcnow),
        Column("updated_at", DateTime, nullable=False, default=utcnow),
    ]


# Related ids are plain indexed integers rather than foreign keys: related
# rows are populated best-effort and may disappear independently.

users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), unique=True, nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(20), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("phone", String(50)),
    Column("date_of_birth", String(20)),
    Column("gender", String(10)),
    Column("address", Text),
    Column("profile_image", Text),
    Column("specialization", String(255)),
    Column("license_number", String(100)),
    Column("department", String(255), index=True),
    Column("hospital_id", Integer, index=True),
    Column("allergies", Text),
    Column("blood_group", String(10)),
    Column("medical_history", Text),
    Column("emergency_contact", Text),
    *_timestamps(),
)

hospitals = Table(
    "hospitals", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("address", Text, nullable=False),
    Column("phone", String(50), nullable=False),
    Column("email", String(255), nullable=False),
    Column("registration_number", String(100), nullable=False),
    Column("type", String(20), nullable=False, default="private"),
    Column("departments", JSON, nullable=False, default=list),
    Column("facilities", JSON, nullable=False, default=list),
    Column("operating_hours", JSON, nullable=False),
    Column("status", String(20), nullable=False, default="active", index=True),
    *_timestamps(),
)

appointments = Table(
    "appointments", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("doctor_id", Integer, nullable=False, index=True),
    Column("date", DateTime, nullable=False),
    Column("time", String(20), nullable=False),
    Column("status", String(20), nullable=False, default="scheduled", index=True),
    Column("reason", Text, nullable=False),
    Column("notes", Text),
    Column("payment_status", String(20)),
    Column("payment_id", Integer),
    *_timestamps(),
)

medical_records = Table(
    "medical_records", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("doctor_id", Integer, nullable=False, index=True),
    Column("appointment_id", Integer),
    Column("diagnosis", Text, nullable=False),
    Column("symptoms", JSON, nullable=False, default=list),
    Column("treatment", Text, nullable=False),
    Column("prescriptions", JSON, nullable=False, default=list),
    Column("lab_results", Text),
    Column("notes", Text),
    *_timestamps(),
)

prescriptions = Table(
    "prescriptions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("doctor_id", Integer, nullable=False, index=True),
    Column("medicine_id", Integer),
    Column("medicine_name", String(255), nullable=False),
    Column("dosage", String(100), nullable=False),
    Column("frequency", String(100), nullable=False),
    Column("duration", String(100), nullable=False),
    Column("instructions", Text),
    Column("status", String(20), nullable=False, default="active"),
    *_timestamps(),
)

medicines = Table(
    "medicines", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, index=True),
    Column("generic_name", String(255), nullable=False),
    Column("manufacturer", String(255), nullable=False),
    Column("category", String(100), nullable=False, index=True),
    Column("price", Float, nullable=False),
    Column("stock", Integer, nullable=False),
    Column("description", Text),
    Column("side_effects", JSON, nullable=False, default=list),
    *_timestamps(),
)

payments = Table(
    "payments", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("appointment_id", Integer),
    Column("amount", Float, nullable=False),
    Column("payment_method", String(20), nullable=False),
    Column("status", String(20), nullable=False),
    Column("transaction_id", String(64)),
    *_timestamps(),
)

health_cards = Table(
    "health_cards", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, unique=True),
    Column("card_number", String(64), nullable=False, unique=True),
    Column("qr_code", Text, nullable=False),
    Column("blood_group", String(10)),
    Column("allergies", JSON),
    Column("emergency_contact", JSON),
    Column("medical_conditions", JSON),
    *_timestamps(),
)


def init_engine(db_uri: str = None, **engine_kwargs):
    """Create a SQLAlchemy engine, verify the connection and create tables."""
    engine = create_engine(db_uri or DB_URI, echo=False, future=True, **engine_kwargs)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        metadata.create_all(engine)
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def ping(engine) -> bool:
    """Return True when the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        print(f"[WARN] Database ping failed: {e}", file=sys.stderr)
        return False
