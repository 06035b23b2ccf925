"""
Interactive health-card console for doctors.
Log in, then scan patient cards (QR payload or card number) to see a summary.
"""

import argparse
from getpass import getpass

from healthapp import store
from healthapp.database import init_engine
from healthapp.errors import NotFoundError
from healthapp.health_cards import card_scanner, lookup_health_card
from healthapp.passwords import verify_password


def print_summary(summary):
    patient = summary["patient"]
    card = summary["healthCard"]
    print(f"\n[patient] {patient['name']} <{patient['email']}>  card={card['cardNumber']}")
    print(f"  DOB: {patient.get('dateOfBirth') or '-'}   Gender: {patient.get('gender') or '-'}"
          f"   Blood group: {card.get('bloodGroup') or patient.get('bloodGroup') or '-'}")
    print(f"  Allergies: {card.get('allergies') or patient.get('allergies') or '-'}")

    print("\n[Recent medical records]")
    if not summary["medicalHistory"]:
        print("  (none)")
    for r in summary["medicalHistory"]:
        print(f"  - {r['createdAt'][:10]}  {r['diagnosis']}  → {r['treatment']}")

    print("\n[Recent prescriptions]")
    if not summary["prescriptions"]:
        print("  (none)")
    for p in summary["prescriptions"]:
        print(f"  - {p['medicineName']} {p['dosage']}, {p['frequency']} for {p['duration']} ({p['status']})")

    print("\n[Recent appointments]")
    if not summary["appointments"]:
        print("  (none)")
    for a in summary["appointments"]:
        print(f"  - {a['date'][:10]} {a['time']}  {a['status']}  {a['reason']}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scan patient health cards.")
    parser.add_argument(
        "--device",
        help="Scanner device or file to read from (default: stdin, for keyboard-wedge scanners)",
    )
    args = parser.parse_args(argv)

    print("=== HealthApp: Health Card Scanner ===\n")
    engine = init_engine()

    # ── Login ────────────────────────────────────────────────────────
    try:
        email = input("Doctor email (or 'quit'): ").strip().lower()
        if not email or email in {"quit", "exit"}:
            print("Goodbye.")
            return
        password = getpass("Password: ")
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    user = store.find_user_by_email(engine, email)
    if not user or not verify_password(password, user["password_hash"]):
        print("\n[ERROR] Login failed: invalid credentials.")
        return
    if user["role"] != "doctor":
        print("\n[ERROR] Only doctors can scan health cards.")
        return

    print(f"\n[auth] Logged in as: {user['name']} (role={user['role']})")
    print("Scan a card, or type 'quit' to stop.\n")

    # ── Scan loop ────────────────────────────────────────────────────
    try:
        with card_scanner(args.device) as cards:
            for card_number in cards:
                try:
                    summary = lookup_health_card(engine, card_number)
                except NotFoundError as e:
                    print(f"\n[scan] {card_number}: {e.message}")
                    continue
                print_summary(summary)
    except KeyboardInterrupt:
        print("\nExiting.")


if __name__ == "__main__":
    main()
