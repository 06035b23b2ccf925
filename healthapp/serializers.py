"""
Per-entity mapping from stored rows to JSON-ready dicts.

Each mapper lists the fields it exposes explicitly, so password hashes and
other internal columns never reach a response, and every identifier is
rendered as a plain string.
"""

from datetime import datetime
from typing import Any, Dict, Optional

Row = Dict[str, Any]


def _id(value) -> Optional[str]:
    return str(value) if value is not None else None


def _ts(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else value


def user_summary(row: Row) -> Row:
    """The four identity fields returned by login/register/staff creation."""
    return {
        "id": _id(row["id"]),
        "email": row["email"],
        "name": row["name"],
        "role": row["role"],
    }


def user_to_dict(row: Optional[Row]) -> Optional[Row]:
    if row is None:
        return None
    return {
        "_id": _id(row["id"]),
        "email": row["email"],
        "name": row["name"],
        "role": row["role"],
        "phone": row.get("phone"),
        "dateOfBirth": row.get("date_of_birth"),
        "gender": row.get("gender"),
        "address": row.get("address"),
        "profileImage": row.get("profile_image"),
        "specialization": row.get("specialization"),
        "licenseNumber": row.get("license_number"),
        "department": row.get("department"),
        "hospitalId": _id(row.get("hospital_id")),
        "allergies": row.get("allergies"),
        "bloodGroup": row.get("blood_group"),
        "medicalHistory": row.get("medical_history"),
        "emergencyContact": row.get("emergency_contact"),
        "createdAt": _ts(row.get("created_at")),
        "updatedAt": _ts(row.get("updated_at")),
    }


def hospital_to_dict(row: Row) -> Row:
    return {
        "_id": _id(row["id"]),
        "name": row["name"],
        "address": row["address"],
        "phone": row["phone"],
        "email": row["email"],
        "registrationNumber": row["registration_number"],
        "type": row["type"],
        "departments": row["departments"] or [],
        "facilities": row["facilities"] or [],
        "operatingHours": row["operating_hours"],
        "status": row["status"],
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }


def appointment_to_dict(row: Row, patient: Row = None, doctor: Row = None,
                        populate: bool = False) -> Row:
    data = {
        "_id": _id(row["id"]),
        "patientId": _id(row["patient_id"]),
        "doctorId": _id(row["doctor_id"]),
        "date": _ts(row["date"]),
        "time": row["time"],
        "status": row["status"],
        "reason": row["reason"],
        "notes": row.get("notes"),
        "paymentStatus": row.get("payment_status"),
        "paymentId": _id(row.get("payment_id")),
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }
    if populate:
        data["patient"] = user_to_dict(patient)
        data["doctor"] = user_to_dict(doctor)
    return data


def medical_record_to_dict(row: Row, patient: Row = None, doctor: Row = None,
                           populate: bool = False) -> Row:
    data = {
        "_id": _id(row["id"]),
        "patientId": _id(row["patient_id"]),
        "doctorId": _id(row["doctor_id"]),
        "appointmentId": _id(row.get("appointment_id")),
        "diagnosis": row["diagnosis"],
        "symptoms": row["symptoms"] or [],
        "treatment": row["treatment"],
        "prescriptions": [str(p) for p in (row["prescriptions"] or [])],
        "labResults": row.get("lab_results"),
        "notes": row.get("notes"),
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }
    if populate:
        data["patient"] = user_to_dict(patient)
        data["doctor"] = user_to_dict(doctor)
    return data


def medicine_to_dict(row: Optional[Row]) -> Optional[Row]:
    if row is None:
        return None
    return {
        "_id": _id(row["id"]),
        "name": row["name"],
        "genericName": row["generic_name"],
        "manufacturer": row["manufacturer"],
        "category": row["category"],
        "price": row["price"],
        "stock": row["stock"],
        "description": row.get("description"),
        "sideEffects": row["side_effects"] or [],
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }


def prescription_to_dict(row: Row, patient: Row = None, doctor: Row = None,
                         medicine: Row = None, populate: bool = False) -> Row:
    data = {
        "_id": _id(row["id"]),
        "patientId": _id(row["patient_id"]),
        "doctorId": _id(row["doctor_id"]),
        "medicineId": _id(row.get("medicine_id")),
        "medicineName": row["medicine_name"],
        "dosage": row["dosage"],
        "frequency": row["frequency"],
        "duration": row["duration"],
        "instructions": row.get("instructions"),
        "status": row["status"],
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }
    if populate:
        data["patient"] = user_to_dict(patient)
        data["doctor"] = user_to_dict(doctor)
        data["medicine"] = medicine_to_dict(medicine)
    return data


def payment_to_dict(row: Row) -> Row:
    return {
        "_id": _id(row["id"]),
        "userId": _id(row["user_id"]),
        "appointmentId": _id(row.get("appointment_id")),
        "amount": row["amount"],
        "paymentMethod": row["payment_method"],
        "status": row["status"],
        "transactionId": row.get("transaction_id"),
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }


def health_card_to_dict(row: Row) -> Row:
    return {
        "_id": _id(row["id"]),
        "patientId": _id(row["patient_id"]),
        "cardNumber": row["card_number"],
        "qrCode": row["qr_code"],
        "bloodGroup": row.get("blood_group"),
        "allergies": row.get("allergies"),
        "emergencyContact": row.get("emergency_contact"),
        "medicalConditions": row.get("medical_conditions"),
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }


def patient_profile(row: Row) -> Row:
    """Clinical view of a patient shown to a doctor after a card scan."""
    return {
        "_id": _id(row["id"]),
        "name": row["name"],
        "email": row["email"],
        "phone": row.get("phone"),
        "dateOfBirth": row.get("date_of_birth"),
        "gender": row.get("gender"),
        "address": row.get("address"),
        "allergies": row.get("allergies"),
        "bloodGroup": row.get("blood_group"),
        "medicalHistory": row.get("medical_history"),
        "emergencyContact": row.get("emergency_contact"),
    }
