"""
Simulated payment gateway and the catalogue of billable services.
"""

import random
import time
from typing import Optional

from healthapp.codes import reference_code
from healthapp.config import PAYMENT_DELAY_SECONDS, PAYMENT_SUCCESS_RATE

PRODUCTS = [
    {
        "id": "general-consultation",
        "name": "General Consultation",
        "description": "General medical consultation with a doctor",
        "priceInCents": 5000,
        "category": "consultation",
    },
    {
        "id": "specialist-consultation",
        "name": "Specialist Consultation",
        "description": "Consultation with a specialist doctor",
        "priceInCents": 10000,
        "category": "consultation",
    },
    {
        "id": "emergency-appointment",
        "name": "Emergency Appointment",
        "description": "Urgent medical appointment",
        "priceInCents": 15000,
        "category": "appointment",
    },
    {
        "id": "follow-up-visit",
        "name": "Follow-up Visit",
        "description": "Follow-up consultation visit",
        "priceInCents": 3000,
        "category": "appointment",
    },
    {
        "id": "health-checkup",
        "name": "Complete Health Checkup",
        "description": "Comprehensive health screening package",
        "priceInCents": 20000,
        "category": "service",
    },
]


def new_transaction_id() -> str:
    return reference_code("TXN")


def charge(
    amount: float,
    payment_method: str,
    card_number: Optional[str] = None,
    card_expiry: Optional[str] = None,
    cvv: Optional[str] = None,
) -> bool:
    """
    Stand-in for a real gateway call: waits PAYMENT_DELAY_SECONDS and
    succeeds with probability PAYMENT_SUCCESS_RATE. Card details are
    accepted for interface parity and never stored.
    """
    if PAYMENT_DELAY_SECONDS > 0:
        time.sleep(PAYMENT_DELAY_SECONDS)
    return random.random() < PAYMENT_SUCCESS_RATE
