import json

from database import get_connection


def _row_to_dict(row):
    if row is None:
        return None
    return dict(row)


def _rows_to_dicts(rows):
    return [dict(row) for row in rows]


# Patient model operations

def create_patient(name, email, password, created_at):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO Patient (name, email, password, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (name, email, password, created_at),
    )
    conn.commit()
    patient_id = cursor.lastrowid
    conn.close()
    return patient_id


def get_patient(patient_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Patient WHERE id = ?", (patient_id,))
    patient = _row_to_dict(cursor.fetchone())
    conn.close()
    return patient


def get_patient_by_email(email):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Patient WHERE LOWER(email) = LOWER(?)", (email,))
    patient = _row_to_dict(cursor.fetchone())
    conn.close()
    return patient


def update_patient(patient_id, name, email):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        UPDATE Patient
        SET name = ?, email = ?
        WHERE id = ?
        """,
        (name, email, patient_id),
    )
    conn.commit()
    updated = cursor.rowcount > 0
    conn.close()
    return updated


# Doctor model operations

def create_doctor_account(name, email, password, specialization, hospital, created_at):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO Doctor (name, email, password, specialization, hospital, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (name, email, password, specialization, hospital, created_at),
    )
    conn.commit()
    doctor_id = cursor.lastrowid
    conn.close()
    return doctor_id


def get_doctor(doctor_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Doctor WHERE id = ?", (doctor_id,))
    row = _row_to_dict(cursor.fetchone())
    conn.close()
    return row


def get_doctor_by_email(email):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Doctor WHERE LOWER(email) = LOWER(?)", (email,))
    row = _row_to_dict(cursor.fetchone())
    conn.close()
    return row


# Doctor-patient link operations

def connect_patient_to_doctor(doctor_id, patient_id, created_at):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, status
        FROM DoctorPatientLink
        WHERE doctor_id = ? AND patient_id = ?
        ORDER BY id DESC
        LIMIT 1
        """,
        (doctor_id, patient_id),
    )
    existing = _row_to_dict(cursor.fetchone())
    if existing:
        conn.close()
        return existing["id"]

    cursor.execute(
        """
        INSERT INTO DoctorPatientLink (doctor_id, patient_id, status, created_at)
        VALUES (?, ?, 'pending', ?)
        """,
        (doctor_id, patient_id, created_at),
    )
    conn.commit()
    link_id = cursor.lastrowid
    conn.close()
    return link_id


def get_pending_links_for_doctor(doctor_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT dpl.*, p.name AS patient_name
        FROM DoctorPatientLink dpl
        JOIN Patient p ON p.id = dpl.patient_id
        WHERE dpl.doctor_id = ? AND dpl.status = 'pending'
        ORDER BY dpl.created_at DESC, dpl.id DESC
        """,
        (doctor_id,),
    )
    rows = _rows_to_dicts(cursor.fetchall())
    conn.close()
    return rows


def approve_doctor_patient_link(link_id, doctor_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        UPDATE DoctorPatientLink
        SET status = 'approved'
        WHERE id = ? AND doctor_id = ?
        """,
        (link_id, doctor_id),
    )
    conn.commit()
    approved = cursor.rowcount > 0
    conn.close()
    return approved


def get_approved_patients_for_doctor(doctor_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT
            p.id AS patient_id,
            p.name,
            hr.overall_score AS latest_score,
            hr.created_at AS last_assessment_at
        FROM DoctorPatientLink dpl
        JOIN Patient p ON p.id = dpl.patient_id
        LEFT JOIN HealthRecord hr ON hr.id = p.latest_health_record_id
        WHERE dpl.doctor_id = ? AND dpl.status = 'approved'
        ORDER BY dpl.created_at DESC, dpl.id DESC
        """,
        (doctor_id,),
    )
    rows = _rows_to_dicts(cursor.fetchall())
    conn.close()
    return rows


def is_doctor_linked_to_patient(doctor_id, patient_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id
        FROM DoctorPatientLink
        WHERE doctor_id = ? AND patient_id = ? AND status = 'approved'
        LIMIT 1
        """,
        (doctor_id, patient_id),
    )
    linked = cursor.fetchone() is not None
    conn.close()
    return linked


# Health record operations

def _row_to_record(row):
    if row is None:
        return None
    row = dict(row)
    return {
        "id": row["id"],
        "patient_id": row["patient_id"],
        "created_at": row["created_at"],
        "overall_score": row["overall_score"],
        "preview_score": row["preview_score"],
        "bmi": {"value": row["bmi_value"], "category": row["bmi_category"]},
        "category_scores": json.loads(row["category_scores"] or "{}"),
        "data": json.loads(row["data"]),
    }


def append_record(patient_id, record):
    """
    Insert a score record and point the patient's latest reference at it.

    Records are never updated afterwards.
    """
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO HealthRecord (
            patient_id,
            overall_score,
            preview_score,
            bmi_value,
            bmi_category,
            category_scores,
            data,
            created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            patient_id,
            record["overall_score"],
            record.get("preview_score"),
            record["bmi"]["value"],
            record["bmi"]["category"],
            json.dumps(record.get("category_scores") or {}, sort_keys=True),
            json.dumps(record["data"], sort_keys=True),
            record["created_at"],
        ),
    )
    record_id = cursor.lastrowid
    cursor.execute(
        "UPDATE Patient SET latest_health_record_id = ? WHERE id = ?",
        (record_id, patient_id),
    )
    conn.commit()
    conn.close()
    return record_id


def get_health_record(record_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM HealthRecord WHERE id = ?", (record_id,))
    record = _row_to_record(cursor.fetchone())
    conn.close()
    return record


def load_latest_record(patient_id):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT hr.*
        FROM Patient p
        JOIN HealthRecord hr ON hr.id = p.latest_health_record_id
        WHERE p.id = ?
        """,
        (patient_id,),
    )
    record = _row_to_record(cursor.fetchone())
    conn.close()
    return record


def load_history(patient_id, limit=10):
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT *
        FROM HealthRecord
        WHERE patient_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT ?
        """,
        (patient_id, limit),
    )
    records = [_row_to_record(row) for row in cursor.fetchall()]
    conn.close()
    return records
