"""
Resource handlers for the clinical collections.

Every handler is gated by ``require_session`` with its allowed-role set;
patient and doctor reads are scoped to the caller's own rows.
"""

from flask import jsonify, request

from healthapp import payments as gateway
from healthapp import serializers, store
from healthapp.api.auth import require_session
from healthapp.api.common import (
    as_list,
    json_body,
    optional_id,
    parse_date,
    parse_float,
    parse_id,
    parse_int,
    pick,
    require_fields,
    require_strings,
)
from healthapp.config import (
    APPOINTMENT_STATUSES,
    DEFAULT_OPERATING_HOURS,
    HOSPITAL_TYPES,
    PAYMENT_METHODS,
)
from healthapp.database import (
    appointments,
    health_cards,
    hospitals,
    medical_records,
    medicines,
    payments,
    prescriptions,
    users,
)
from healthapp.errors import NotFoundError, ValidationError
from healthapp.health_cards import get_or_create_card, lookup_health_card, parse_card_payload
from healthapp.rbac import build_policy, scope_filters

PAYMENT_SCOPE = {"patient": "user_id", "doctor": "user_id"}

HEALTH_CARD_FIELDS = {
    "bloodGroup": "blood_group",
    "allergies": "allergies",
    "emergencyContact": "emergency_contact",
    "medicalConditions": "medical_conditions",
}

MEDICINE_FIELDS = {"name": "name", "description": "description"}


def _caller_scope(columns=None):
    return scope_filters(build_policy(request.principal), columns)


def _require_user(engine, user_id: int, role: str, message: str):
    user = store.find_user_by_id(engine, user_id)
    if not user or user["role"] != role:
        raise NotFoundError(message)
    return user


def populate_appointments(engine, rows):
    people = store.rows_by_id(engine, users, [r["patient_id"] for r in rows] + [r["doctor_id"] for r in rows])
    return [
        serializers.appointment_to_dict(
            r, people.get(r["patient_id"]), people.get(r["doctor_id"]), populate=True,
        )
        for r in rows
    ]


def _payment_amount(data) -> float:
    amount = parse_float(data["amount"], "amount")
    if amount <= 0:
        raise ValidationError("Invalid amount")
    return amount


def register_resource_routes(app, engine):
    """Register the clinical resource handlers on the Flask *app*."""

    # ── Appointments ─────────────────────────────────────────────────

    @app.route("/api/appointments", methods=["GET"])
    @require_session()
    def list_appointments():
        filters = _caller_scope()
        status = request.args.get("status")
        if status:
            filters["status"] = status

        rows = store.fetch_all(engine, appointments, filters, order_by=appointments.c.date.desc())
        return jsonify({"appointments": populate_appointments(engine, rows)})

    @app.route("/api/appointments", methods=["POST"])
    @require_session("patient")
    def create_appointment():
        data = json_body()
        require_fields(data, "doctorId", "date", "time", "reason")
        require_strings(data, "time", "reason")

        doctor_id = parse_id(data["doctorId"])
        date = parse_date(data["date"])
        _require_user(engine, doctor_id, "doctor", "Doctor not found")

        appointment_id = store.insert_row(engine, appointments, {
            "patient_id": request.principal.user_id,
            "doctor_id": doctor_id,
            "date": date,
            "time": data["time"],
            "status": "scheduled",
            "reason": data["reason"],
        })
        return jsonify({"success": True, "appointmentId": str(appointment_id)})

    @app.route("/api/appointments/<int:appointment_id>", methods=["PATCH"])
    @require_session("patient", "doctor", "admin")
    def update_appointment(appointment_id):
        data = json_body()
        require_strings(data, "status", "notes")
        values = {}
        if data.get("status"):
            if data["status"] not in APPOINTMENT_STATUSES:
                raise ValidationError("Invalid status")
            values["status"] = data["status"]
        if "notes" in data:
            values["notes"] = data["notes"]

        matched = store.update_rows(engine, appointments, values, id=appointment_id, **_caller_scope())
        if matched == 0:
            raise NotFoundError("Appointment not found")
        return jsonify({"success": True})

    @app.route("/api/appointments/<int:appointment_id>", methods=["DELETE"])
    @require_session("patient", "doctor", "admin")
    def delete_appointment(appointment_id):
        if store.delete_rows(engine, appointments, id=appointment_id, **_caller_scope()) == 0:
            raise NotFoundError("Appointment not found")
        return jsonify({"success": True})

    # ── People ───────────────────────────────────────────────────────

    @app.route("/api/doctors", methods=["GET"])
    @require_session()
    def list_doctors():
        filters = {"role": "doctor"}
        department = request.args.get("department")
        if department:
            filters["department"] = department
        rows = store.fetch_all(engine, users, filters, order_by=users.c.name)
        return jsonify({"doctors": [serializers.user_to_dict(r) for r in rows]})

    @app.route("/api/patients", methods=["GET"])
    @require_session("doctor")
    def list_patients():
        rows = store.fetch_all(engine, users, {"role": "patient"}, order_by=users.c.name)
        return jsonify({"patients": [serializers.user_to_dict(r) for r in rows]})

    # ── Health cards ─────────────────────────────────────────────────

    @app.route("/api/health-card", methods=["GET"])
    @require_session("patient")
    def get_health_card():
        card = get_or_create_card(engine, request.principal.user_id)
        return jsonify({"healthCard": serializers.health_card_to_dict(card)})

    @app.route("/api/health-card", methods=["PATCH"])
    @require_session("patient")
    def update_health_card():
        values = pick(json_body(), HEALTH_CARD_FIELDS)
        matched = store.update_rows(engine, health_cards, values, patient_id=request.principal.user_id)
        if matched == 0:
            raise NotFoundError("Health card not found")
        return jsonify({"success": True})

    @app.route("/api/health-card/scan", methods=["POST"])
    @require_session("doctor", message="Unauthorized - Doctor access only")
    def scan_health_card():
        data = json_body()
        card_number = parse_card_payload(str(data.get("cardNumber") or ""))
        if not card_number:
            raise ValidationError("Card number is required")
        return jsonify(lookup_health_card(engine, card_number))

    # ── Hospitals ────────────────────────────────────────────────────

    @app.route("/api/hospitals", methods=["GET"])
    @require_session()
    def list_hospitals():
        rows = store.fetch_all(engine, hospitals, {"status": "active"}, order_by=hospitals.c.name)
        return jsonify({"hospitals": [serializers.hospital_to_dict(r) for r in rows]})

    @app.route("/api/hospitals", methods=["POST"])
    @require_session("admin")
    def create_hospital():
        data = json_body()
        require_fields(data, "name", "address", "phone", "email", "registrationNumber")
        require_strings(data, "name", "address", "phone", "email", "registrationNumber", "type")

        hospital_type = data.get("type") or "private"
        if hospital_type not in HOSPITAL_TYPES:
            raise ValidationError("Invalid hospital type")

        hospital_id = store.insert_row(engine, hospitals, {
            "name": data["name"],
            "address": data["address"],
            "phone": data["phone"],
            "email": data["email"],
            "registration_number": data["registrationNumber"],
            "type": hospital_type,
            "departments": as_list(data.get("departments")),
            "facilities": as_list(data.get("facilities")),
            "operating_hours": data.get("operatingHours") or dict(DEFAULT_OPERATING_HOURS),
            "status": "active",
        })
        row = store.fetch_one(engine, hospitals, id=hospital_id)
        return jsonify({"success": True, "hospital": serializers.hospital_to_dict(row)})

    # ── Medical records ──────────────────────────────────────────────

    @app.route("/api/medical-records", methods=["GET"])
    @require_session()
    def list_medical_records():
        rows = store.fetch_all(
            engine, medical_records, _caller_scope(),
            order_by=medical_records.c.created_at.desc(),
        )
        people = store.rows_by_id(engine, users, [r["patient_id"] for r in rows] + [r["doctor_id"] for r in rows])
        return jsonify({
            "records": [
                serializers.medical_record_to_dict(
                    r, people.get(r["patient_id"]), people.get(r["doctor_id"]), populate=True,
                )
                for r in rows
            ],
        })

    @app.route("/api/medical-records/create", methods=["POST"])
    @require_session("doctor")
    def create_medical_record():
        data = json_body()
        require_fields(data, "patientId", "diagnosis", "symptoms", "treatment")
        require_strings(data, "diagnosis", "treatment", "labResults", "notes")

        patient_id = parse_id(data["patientId"])
        appointment_id = optional_id(data.get("appointmentId"))
        prescription_ids = [parse_id(p) for p in as_list(data.get("prescriptions"))]
        _require_user(engine, patient_id, "patient", "Patient not found")

        record_id = store.insert_row(engine, medical_records, {
            "patient_id": patient_id,
            "doctor_id": request.principal.user_id,
            "appointment_id": appointment_id,
            "diagnosis": data["diagnosis"],
            "symptoms": as_list(data["symptoms"]),
            "treatment": data["treatment"],
            "prescriptions": prescription_ids,
            "lab_results": data.get("labResults"),
            "notes": data.get("notes"),
        })
        return jsonify({"success": True, "recordId": str(record_id)})

    # ── Prescriptions ────────────────────────────────────────────────

    @app.route("/api/prescriptions", methods=["GET"])
    @require_session()
    def list_prescriptions():
        rows = store.fetch_all(
            engine, prescriptions, _caller_scope(),
            order_by=prescriptions.c.created_at.desc(),
        )
        people = store.rows_by_id(engine, users, [r["patient_id"] for r in rows] + [r["doctor_id"] for r in rows])
        drugs = store.rows_by_id(engine, medicines, [r["medicine_id"] for r in rows])
        return jsonify({
            "prescriptions": [
                serializers.prescription_to_dict(
                    r,
                    people.get(r["patient_id"]),
                    people.get(r["doctor_id"]),
                    drugs.get(r["medicine_id"]),
                    populate=True,
                )
                for r in rows
            ],
        })

    @app.route("/api/prescriptions/create", methods=["POST"])
    @require_session("doctor")
    def create_prescription():
        data = json_body()
        require_fields(data, "patientId", "medicineName", "dosage", "frequency", "duration")
        require_strings(data, "medicineName", "dosage", "frequency", "duration", "instructions")

        patient_id = parse_id(data["patientId"])
        medicine_id = optional_id(data.get("medicineId"))
        _require_user(engine, patient_id, "patient", "Patient not found")

        prescription_id = store.insert_row(engine, prescriptions, {
            "patient_id": patient_id,
            "doctor_id": request.principal.user_id,
            "medicine_id": medicine_id,
            "medicine_name": data["medicineName"],
            "dosage": data["dosage"],
            "frequency": data["frequency"],
            "duration": data["duration"],
            "instructions": data.get("instructions"),
            "status": "active",
        })
        return jsonify({"success": True, "prescriptionId": str(prescription_id)})

    # ── Medicines ────────────────────────────────────────────────────

    @app.route("/api/medicines", methods=["GET"])
    @require_session()
    def list_medicines():
        filters, conditions = {}, []
        category = request.args.get("category")
        if category:
            filters["category"] = category
        search = request.args.get("search")
        if search:
            conditions.append(store.search_condition(medicines, search, "name", "generic_name"))

        rows = store.fetch_all(engine, medicines, filters, conditions, order_by=medicines.c.name)
        return jsonify({"medicines": [serializers.medicine_to_dict(r) for r in rows]})

    @app.route("/api/medicines", methods=["POST"])
    @require_session("pharmacist", "admin")
    def create_medicine():
        data = json_body()
        require_fields(data, "name", "genericName", "manufacturer", "category", "price", "stock")
        require_strings(data, "name", "genericName", "manufacturer", "category", "description")

        price = parse_float(data["price"], "price")
        stock = parse_int(data["stock"], "stock")
        if price < 0 or stock < 0:
            raise ValidationError("Price and stock must not be negative")

        medicine_id = store.insert_row(engine, medicines, {
            "name": data["name"],
            "generic_name": data["genericName"],
            "manufacturer": data["manufacturer"],
            "category": data["category"],
            "price": price,
            "stock": stock,
            "description": data.get("description"),
            "side_effects": data["sideEffects"] if isinstance(data.get("sideEffects"), list) else [],
        })
        return jsonify({"success": True, "medicineId": str(medicine_id)})

    @app.route("/api/medicines/<int:medicine_id>", methods=["PATCH"])
    @require_session("pharmacist", "admin")
    def update_medicine(medicine_id):
        data = json_body()
        require_strings(data, "name", "description")
        values = pick(data, MEDICINE_FIELDS)
        if data.get("price") is not None:
            values["price"] = parse_float(data["price"], "price")
        if data.get("stock") is not None:
            values["stock"] = parse_int(data["stock"], "stock")
        if values.get("price", 0) < 0 or values.get("stock", 0) < 0:
            raise ValidationError("Price and stock must not be negative")

        if store.update_rows(engine, medicines, values, id=medicine_id) == 0:
            raise NotFoundError("Medicine not found")
        return jsonify({"success": True})

    @app.route("/api/medicines/<int:medicine_id>", methods=["DELETE"])
    @require_session("pharmacist", "admin")
    def delete_medicine(medicine_id):
        if store.delete_rows(engine, medicines, id=medicine_id) == 0:
            raise NotFoundError("Medicine not found")
        return jsonify({"success": True})

    # ── Payments ─────────────────────────────────────────────────────

    def _payable_appointment(data):
        appointment_id = optional_id(data.get("appointmentId"))
        if appointment_id is None:
            return None
        if not store.fetch_one(engine, appointments, id=appointment_id, **_caller_scope()):
            raise NotFoundError("Appointment not found")
        return appointment_id

    def _record_payment(data, appointment_id):
        transaction_id = gateway.new_transaction_id()
        payment_id = store.insert_row(engine, payments, {
            "user_id": request.principal.user_id,
            "appointment_id": appointment_id,
            "amount": _payment_amount(data),
            "payment_method": data["paymentMethod"],
            "status": "completed",
            "transaction_id": transaction_id,
        })
        return payment_id, transaction_id

    def _validate_payment(data):
        require_fields(data, "amount", "paymentMethod")
        require_strings(data, "paymentMethod")
        _payment_amount(data)
        if data["paymentMethod"] not in PAYMENT_METHODS:
            raise ValidationError("Invalid payment method")

    @app.route("/api/payments", methods=["GET"])
    @require_session()
    def list_payments():
        rows = store.fetch_all(
            engine, payments, _caller_scope(PAYMENT_SCOPE),
            order_by=payments.c.created_at.desc(),
        )
        return jsonify({"payments": [serializers.payment_to_dict(r) for r in rows]})

    @app.route("/api/payments", methods=["POST"])
    @require_session()
    def create_payment():
        data = json_body()
        _validate_payment(data)
        appointment_id = _payable_appointment(data)

        payment_id, transaction_id = _record_payment(data, appointment_id)
        return jsonify({
            "success": True,
            "paymentId": str(payment_id),
            "transactionId": transaction_id,
        })

    @app.route("/api/payments/process", methods=["POST"])
    @require_session()
    def process_payment():
        data = json_body()
        _validate_payment(data)
        appointment_id = _payable_appointment(data)

        paid = gateway.charge(
            _payment_amount(data),
            data["paymentMethod"],
            card_number=data.get("cardNumber"),
            card_expiry=data.get("cardExpiry"),
            cvv=data.get("cvv"),
        )
        if not paid:
            raise ValidationError("Payment failed")

        payment_id, transaction_id = _record_payment(data, appointment_id)
        # Separate write: a failure here leaves the payment recorded but the
        # appointment unmarked.
        if appointment_id is not None:
            store.update_rows(
                engine, appointments,
                {"payment_status": "paid", "payment_id": payment_id},
                id=appointment_id,
            )

        print(f"[payments] {transaction_id} completed for user {request.principal.subject_id}")
        return jsonify({
            "success": True,
            "paymentId": str(payment_id),
            "transactionId": transaction_id,
            "message": "Payment processed successfully",
        })

    @app.route("/api/payments/products", methods=["GET"])
    @require_session()
    def list_products():
        return jsonify({"products": gateway.PRODUCTS})
