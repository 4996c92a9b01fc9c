import logging
from datetime import datetime

from flask import Flask, jsonify, request, session
from flask_cors import CORS
from werkzeug.security import check_password_hash, generate_password_hash

import config
from database import init_db
from health_chat_api import ChatUnavailable, generate_chat_reply
from health_score_engine import InvalidInput
from health_service import (
    get_dashboard_metrics,
    get_health_history,
    get_patient_overview,
    get_patient_report,
    preview_assessment,
    submit_assessment,
    submit_full_assessment,
    update_patient_profile,
)
from models import (
    approve_doctor_patient_link,
    connect_patient_to_doctor,
    create_doctor_account,
    create_patient,
    get_approved_patients_for_doctor,
    get_doctor,
    get_doctor_by_email,
    get_patient,
    get_patient_by_email,
    get_pending_links_for_doctor,
    is_doctor_linked_to_patient,
)
from question_bank import BASIC_INFO_QUESTIONS, CATEGORY_QUESTIONS
from recommendation_engine import score_status

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

app = Flask(__name__)
CORS(app)
app.secret_key = config.SECRET_KEY


def _is_patient_session():
    return session.get("role") == "patient" and session.get("patient_id") is not None


def _is_doctor_session():
    return session.get("role") == "doctor" and session.get("doctor_id") is not None


@app.before_request
def setup_database_once():
    init_db()


@app.errorhandler(InvalidInput)
def handle_invalid_input(error):
    return jsonify({"success": False, "error": str(error), "field": error.field}), 400


@app.errorhandler(ChatUnavailable)
def handle_chat_unavailable(error):
    return jsonify({"success": False, "error": "Health chat is temporarily unavailable."}), 503


def _not_authenticated():
    return jsonify({"success": False, "error": "Not authenticated"}), 401


def _payload():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise InvalidInput("body", "must be a JSON object")
    return data


def _to_number(value):
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def _parse_basic_info(raw):
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidInput("basic_info", "must be an object of metric values")
    parsed = dict(raw)
    for question in BASIC_INFO_QUESTIONS:
        if question["type"] == "number" and question["id"] in parsed:
            parsed[question["id"]] = _to_number(parsed[question["id"]])
    return parsed


def _get_current_patient_id():
    if not _is_patient_session():
        return None
    patient_id = session["patient_id"]
    if not get_patient(patient_id):
        session.clear()
        return None
    return patient_id


def _get_current_doctor():
    if not _is_doctor_session():
        return None
    return get_doctor(session["doctor_id"])


@app.route("/")
def landing_page():
    return jsonify({"name": "HealthMosaic", "status": "ok"})


@app.route("/health")
def health_check():
    return jsonify({"status": "ok", "time": datetime.now().isoformat(timespec="seconds")})


@app.route("/patient/register", methods=["POST"])
def patient_register():
    data = _payload()
    name = str(data.get("name", "")).strip()
    email = str(data.get("email", "")).strip().lower()
    password = str(data.get("password", ""))

    if not name:
        raise InvalidInput("name", "is required")
    if not email:
        raise InvalidInput("email", "is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput("password", f"must be at least {MIN_PASSWORD_LENGTH} characters")
    if get_patient_by_email(email):
        return jsonify({"success": False, "error": "Patient with this email already exists."}), 409

    patient_id = create_patient(
        name=name,
        email=email,
        password=generate_password_hash(password),
        created_at=datetime.now().isoformat(timespec="seconds"),
    )
    session.clear()
    session["patient_id"] = patient_id
    session["role"] = "patient"
    logger.info("Registered patient %s", patient_id)
    return jsonify({"success": True, "patient_id": patient_id}), 201


@app.route("/patient/login", methods=["POST"])
def patient_login():
    data = _payload()
    email = str(data.get("email", "")).strip().lower()
    password = str(data.get("password", ""))

    patient = get_patient_by_email(email) if email else None
    if not patient or not check_password_hash(patient["password"], password):
        return jsonify({"success": False, "error": "Invalid email or password."}), 401

    session.clear()
    session["patient_id"] = patient["id"]
    session["role"] = "patient"
    return jsonify({"success": True, "patient_id": patient["id"]})


@app.route("/patient/logout")
def patient_logout():
    session.pop("patient_id", None)
    session.pop("role", None)
    return jsonify({"success": True})


@app.route("/patient/dashboard")
def patient_dashboard():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    overview = get_patient_overview(patient_id)
    dashboard = get_dashboard_metrics(patient_id)
    history = get_health_history(patient_id)
    return jsonify(
        {
            "success": True,
            "patient": overview["patient"],
            "latest_health": overview["latest_health"],
            "metrics": dashboard["metrics"],
            "history": history,
        }
    )


@app.route("/patient/profile", methods=["POST"])
def patient_profile():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    patient = update_patient_profile(patient_id, _payload())
    return jsonify({"success": True, "patient": patient})


@app.route("/assessment/questions")
def assessment_questions():
    return jsonify(
        {
            "basic_info": BASIC_INFO_QUESTIONS,
            "categories": CATEGORY_QUESTIONS,
        }
    )


@app.route("/assessment/preview", methods=["POST"])
def assessment_preview():
    if _get_current_patient_id() is None:
        return _not_authenticated()

    result = preview_assessment(_parse_basic_info(_payload()))
    return jsonify({"success": True, **result})


@app.route("/assessment/submit", methods=["POST"])
def assessment_submit():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    result = submit_assessment(patient_id, _parse_basic_info(_payload()))
    return jsonify({"success": True, **result}), 201


@app.route("/assessment/full", methods=["POST"])
def assessment_full():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    data = _payload()
    result = submit_full_assessment(
        patient_id,
        _parse_basic_info(data.get("basic_info")),
        data.get("responses"),
    )
    return jsonify({"success": True, **result}), 201


@app.route("/health/history")
def health_history():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    limit = request.args.get("limit")
    records = get_health_history(patient_id, limit=_to_number(limit) if limit else None)
    return jsonify({"success": True, "records": records})


@app.route("/api/health-chat", methods=["POST"])
def health_chat():
    if _get_current_patient_id() is None:
        return _not_authenticated()

    data = _payload()
    reply = generate_chat_reply(data.get("messages"))
    return jsonify(reply)


@app.route("/doctor/register", methods=["POST"])
def doctor_register():
    data = _payload()
    name = str(data.get("name", "")).strip()
    email = str(data.get("email", "")).strip().lower()
    password = str(data.get("password", ""))
    specialization = str(data.get("specialization", "General")).strip() or "General"
    hospital = str(data.get("hospital", "Independent")).strip() or "Independent"

    if not name:
        raise InvalidInput("name", "is required")
    if not email:
        raise InvalidInput("email", "is required")
    if not password:
        raise InvalidInput("password", "is required")
    if get_doctor_by_email(email):
        return jsonify({"success": False, "error": "Doctor with this email already exists."}), 409

    doctor_id = create_doctor_account(
        name=name,
        email=email,
        password=generate_password_hash(password),
        specialization=specialization,
        hospital=hospital,
        created_at=datetime.now().isoformat(timespec="seconds"),
    )
    logger.info("Registered doctor %s", doctor_id)
    return jsonify({"success": True, "doctor_id": doctor_id}), 201


@app.route("/doctor/login", methods=["POST"])
def doctor_login():
    data = _payload()
    email = str(data.get("email", "")).strip().lower()
    password = str(data.get("password", ""))

    doctor = get_doctor_by_email(email) if email else None
    if not doctor or not check_password_hash(doctor["password"], password):
        return jsonify({"success": False, "error": "Invalid email or password."}), 401

    session.clear()
    session["doctor_id"] = doctor["id"]
    session["role"] = "doctor"
    return jsonify({"success": True, "doctor_id": doctor["id"]})


@app.route("/doctor/logout")
def doctor_logout():
    session.pop("doctor_id", None)
    session.pop("role", None)
    return jsonify({"success": True})


@app.route("/doctor/dashboard")
def doctor_portal_dashboard():
    doctor = _get_current_doctor()
    if not doctor:
        return _not_authenticated()

    patients = get_approved_patients_for_doctor(doctor["id"])
    for patient in patients:
        patient["status"] = score_status(patient["latest_score"])

    return jsonify(
        {
            "success": True,
            "doctor": {
                "id": doctor["id"],
                "name": doctor["name"],
                "specialization": doctor["specialization"],
                "hospital": doctor["hospital"],
            },
            "patients": patients,
            "pending_links": get_pending_links_for_doctor(doctor["id"]),
        }
    )


@app.route("/connect_doctor", methods=["POST"])
def connect_doctor():
    patient_id = _get_current_patient_id()
    if patient_id is None:
        return _not_authenticated()

    doctor_email = str(_payload().get("doctor_email", "")).strip().lower()
    doctor = get_doctor_by_email(doctor_email) if doctor_email else None
    if not doctor:
        return jsonify({"success": False, "error": "Doctor not found for this email."}), 404

    link_id = connect_patient_to_doctor(
        doctor_id=doctor["id"],
        patient_id=patient_id,
        created_at=datetime.now().isoformat(timespec="seconds"),
    )
    return jsonify({"success": True, "link_id": link_id, "status": "pending"})


@app.route("/doctor/approve_patient/<int:link_id>", methods=["POST"])
def doctor_approve_patient(link_id):
    doctor = _get_current_doctor()
    if not doctor:
        return _not_authenticated()

    if not approve_doctor_patient_link(link_id, doctor["id"]):
        return jsonify({"success": False, "error": "Pending link not found."}), 404
    return jsonify({"success": True})


@app.route("/doctor/patient/<int:patient_id>")
def doctor_patient_detail(patient_id):
    doctor = _get_current_doctor()
    if not doctor:
        return _not_authenticated()

    if not is_doctor_linked_to_patient(doctor["id"], patient_id):
        return jsonify({"success": False, "error": "Patient is not linked to this doctor."}), 403

    report = get_patient_report(patient_id)
    if not report:
        return jsonify({"success": False, "error": "Patient not found."}), 404
    return jsonify({"success": True, **report})


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    app.run(host="0.0.0.0", port=config.PORT)
