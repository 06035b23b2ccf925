#!/usr/bin/env python3
"""
Seed the default hospital and administrator account.
Optionally seeds a starter medicine catalogue (--with-medicines).
"""

import argparse
import os

from healthapp import store
from healthapp.database import hospitals, init_engine, medicines
from healthapp.passwords import hash_password

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@healthcare.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin@123456")

DEFAULT_HOSPITAL = {
    "name": "Central Healthcare Hospital",
    "address": "123 Medical Center Drive, Healthcare City",
    "phone": "+1-555-0100",
    "email": "info@centralhealthcare.com",
    "registration_number": "HOS-2024-001",
    "type": "private",
    "departments": ["Cardiology", "Neurology", "Orthopedics", "Pediatrics",
                    "General Medicine", "Emergency", "Surgery"],
    "facilities": ["ICU", "Emergency Room", "Laboratory", "Radiology", "Pharmacy", "Blood Bank"],
    "operating_hours": {"open": "00:00", "close": "23:59"},
    "status": "active",
}

SAMPLE_MEDICINES = [
    ("Amoxicillin", "Amoxicillin", "PharmaCorp", "Antibiotic", 12.99, 150,
     "Broad-spectrum antibiotic used to treat bacterial infections",
     ["Nausea", "Diarrhea", "Rash"]),
    ("Ibuprofen", "Ibuprofen", "MediHealth", "Painkiller", 8.99, 200,
     "Nonsteroidal anti-inflammatory drug for pain relief",
     ["Stomach upset", "Dizziness", "Headache"]),
    ("Vitamin D3", "Cholecalciferol", "VitaLife", "Vitamin", 15.99, 100,
     "Essential vitamin for bone health and immune function",
     ["Rare: Nausea", "Constipation"]),
    ("Omeprazole", "Omeprazole", "GastroMed", "Antacid", 18.99, 80,
     "Proton pump inhibitor for acid reflux and heartburn",
     ["Headache", "Stomach pain", "Diarrhea"]),
    ("Cetirizine", "Cetirizine HCl", "AllergyFree", "Antihistamine", 10.99, 120,
     "Antihistamine for allergy relief",
     ["Drowsiness", "Dry mouth", "Fatigue"]),
]


def seed_admin(engine):
    if store.find_user_by_email(engine, ADMIN_EMAIL):
        print("Admin user already exists")
        return None

    hospital_id = store.insert_row(engine, hospitals, DEFAULT_HOSPITAL)
    print(f"Default hospital created: {hospital_id}")

    user_id = store.create_user(engine, {
        "email": ADMIN_EMAIL,
        "password_hash": hash_password(ADMIN_PASSWORD),
        "name": "System Administrator",
        "role": "admin",
        "phone": "+1-555-0100",
        "hospital_id": hospital_id,
    })
    print(f"Admin user created: {user_id}")
    return user_id


def seed_medicines(engine):
    created = 0
    for name, generic, maker, category, price, stock, description, side_effects in SAMPLE_MEDICINES:
        if store.fetch_one(engine, medicines, name=name):
            continue
        store.insert_row(engine, medicines, {
            "name": name,
            "generic_name": generic,
            "manufacturer": maker,
            "category": category,
            "price": price,
            "stock": stock,
            "description": description,
            "side_effects": side_effects,
        })
        created += 1
    print(f"Medicines seeded: {created}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--with-medicines", action="store_true")
    args = parser.parse_args()

    engine = init_engine()
    if seed_admin(engine):
        print("\n=== Admin Credentials ===")
        print(f"Email: {ADMIN_EMAIL}")
        print(f"Password: {ADMIN_PASSWORD}")
        print("=========================\n")
    if args.with_medicines:
        seed_medicines(engine)
    print("Seeding completed successfully!")
