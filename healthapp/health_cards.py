"""
Health cards: issuance, QR payloads, doctor-side lookup and the card scanner.
"""

import json
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from urllib.parse import quote

from sqlalchemy.exc import IntegrityError

from healthapp import serializers, store
from healthapp.codes import reference_code
from healthapp.config import (
    QR_SERVICE_URL,
    SCAN_APPOINTMENTS_LIMIT,
    SCAN_PRESCRIPTIONS_LIMIT,
    SCAN_RECORDS_LIMIT,
)
from healthapp.database import appointments, health_cards, medical_records, prescriptions, users
from healthapp.errors import NotFoundError


def qr_payload(card_number: str, patient_id: int) -> str:
    return json.dumps({"cardNumber": card_number, "patientId": str(patient_id)})


def qr_code_url(card_number: str, patient_id: int) -> str:
    """URL of a QR image encoding the card payload (rendered by a third party)."""
    return QR_SERVICE_URL + quote(qr_payload(card_number, patient_id), safe="")


def parse_card_payload(text: str) -> Optional[str]:
    """
    Extract a card number from scanned text: either the JSON QR payload
    or a bare card number. Returns None for anything unrecognisable.
    """
    text = (text or "").strip()
    if not text:
        return None
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except ValueError:
            return None
        card = data.get("cardNumber") if isinstance(data, dict) else None
        return card.strip() if isinstance(card, str) and card.strip() else None
    if text.startswith("HC") and text.isalnum():
        return text
    return None


def get_or_create_card(engine, patient_id: int) -> Dict[str, Any]:
    """Return the patient's card, issuing one on first access."""
    card = store.fetch_one(engine, health_cards, patient_id=patient_id)
    if card:
        return card

    card_number = reference_code("HC")
    try:
        store.insert_row(engine, health_cards, {
            "patient_id": patient_id,
            "card_number": card_number,
            "qr_code": qr_code_url(card_number, patient_id),
        })
    except IntegrityError:
        # A concurrent request issued the card first.
        pass
    return store.fetch_one(engine, health_cards, patient_id=patient_id)


def lookup_health_card(engine, card_number: str) -> Dict[str, Any]:
    """Patient summary behind a scanned card, as shown to a doctor."""
    card = store.fetch_one(engine, health_cards, card_number=card_number)
    if not card:
        raise NotFoundError("Invalid health card")

    patient = store.fetch_one(engine, users, id=card["patient_id"])
    if not patient:
        raise NotFoundError("Patient not found")

    pid = card["patient_id"]
    records = store.fetch_all(
        engine, medical_records, {"patient_id": pid},
        order_by=medical_records.c.created_at.desc(), limit=SCAN_RECORDS_LIMIT,
    )
    scripts = store.fetch_all(
        engine, prescriptions, {"patient_id": pid},
        order_by=prescriptions.c.created_at.desc(), limit=SCAN_PRESCRIPTIONS_LIMIT,
    )
    visits = store.fetch_all(
        engine, appointments, {"patient_id": pid},
        order_by=appointments.c.date.desc(), limit=SCAN_APPOINTMENTS_LIMIT,
    )

    return {
        "patient": serializers.patient_profile(patient),
        "healthCard": serializers.health_card_to_dict(card),
        "medicalHistory": [serializers.medical_record_to_dict(r) for r in records],
        "prescriptions": [serializers.prescription_to_dict(p) for p in scripts],
        "appointments": [serializers.appointment_to_dict(a) for a in visits],
    }


# ── Scanner ──────────────────────────────────────────────────────────

def _read_cards(stream) -> Iterator[str]:
    for line in stream:
        text = line.strip()
        if not text:
            continue
        if text.lower() in {"quit", "exit"}:
            return
        card = parse_card_payload(text)
        if card is None:
            print(f"[WARN] Unrecognised scan: {text[:40]!r}", file=sys.stderr)
            continue
        yield card


@contextmanager
def card_scanner(source=None):
    """
    Scoped card scanner. *source* is a device/file path (opened and closed
    here), a file-like object owned by the caller, or None for stdin
    (keyboard-wedge scanners). Yields an iterator of decoded card numbers;
    the scanner is stopped on every exit path.
    """
    owned = isinstance(source, str)
    stream = open(source, "r", encoding="utf-8") if owned else (source or sys.stdin)
    print("[scan] Scanner started.")
    try:
        yield _read_cards(stream)
    finally:
        if owned:
            stream.close()
        print("[scan] Scanner stopped.")
