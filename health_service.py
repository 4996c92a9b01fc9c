import logging
from datetime import datetime

from config import HISTORY_LIMIT
from health_score_engine import (
    InvalidInput,
    compute_bmi,
    compute_breakdown_metrics,
    evaluate_assessment,
    final_score,
    preview_score,
    validate_assessment_input,
)
from models import (
    append_record,
    get_health_record,
    get_patient,
    get_patient_by_email,
    load_history,
    load_latest_record,
    update_patient,
)
from question_bank import list_categories, resolve_responses
from recommendation_engine import score_status

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


def _now():
    return datetime.now().isoformat(timespec="seconds")


def _public_patient(patient):
    return {
        "id": patient["id"],
        "name": patient["name"],
        "email": patient["email"],
    }


def _summarize_record(record):
    if not record:
        return None
    return {
        "id": record["id"],
        "score": record["overall_score"],
        "status": score_status(record["overall_score"]),
        "date": record["created_at"],
        "bmi": record["bmi"],
        "category_scores": record["category_scores"],
        "data": record["data"],
    }


def _normalize_limit(limit):
    if limit is None:
        return HISTORY_LIMIT
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInput("limit", "must be an integer")
    if limit < 1 or limit > MAX_HISTORY_LIMIT:
        raise InvalidInput("limit", f"must be between 1 and {MAX_HISTORY_LIMIT}")
    return limit


def get_patient_overview(patient_id):
    patient = get_patient(patient_id)
    if not patient:
        return None

    return {
        "patient": _public_patient(patient),
        "latest_health": _summarize_record(load_latest_record(patient_id)),
    }


def preview_assessment(data):
    """Optimistic score for immediate feedback; nothing is stored."""
    values = validate_assessment_input(data)
    score = preview_score(values)
    return {
        "preview_score": score,
        "status": score_status(score),
        "bmi": compute_bmi(values["weight"], values["height"]),
    }


def _store_record(patient_id, record):
    record_id = append_record(patient_id, record)
    stored = get_health_record(record_id)
    logger.info(
        "Stored health record %s for patient %s (score=%s)",
        record_id,
        patient_id,
        stored["overall_score"],
    )
    return stored


def submit_assessment(patient_id, data):
    """
    Score the quick six-question assessment and append it to history.

    Both the optimistic preview and the authoritative score are returned so
    the caller can replace the value it displayed before confirmation.
    """
    if not get_patient(patient_id):
        return None

    values = validate_assessment_input(data)
    score = final_score(values)
    record = {
        "created_at": _now(),
        "overall_score": score,
        "preview_score": preview_score(values),
        "bmi": compute_bmi(values["weight"], values["height"]),
        "category_scores": {},
        "data": values,
    }
    stored = _store_record(patient_id, record)

    return {
        "preview_score": stored["preview_score"],
        "score": stored["overall_score"],
        "status": score_status(stored["overall_score"]),
        "record": _summarize_record(stored),
    }


def submit_full_assessment(patient_id, basic_info, answers_by_category):
    """
    Score the multi-step questionnaire: basic metrics plus one answer per
    question in every category of the question bank.
    """
    if not get_patient(patient_id):
        return None

    values = validate_assessment_input(basic_info)
    answers_by_category = answers_by_category or {}
    if not isinstance(answers_by_category, dict):
        raise InvalidInput("responses", "must map each category to its answers")

    responses_by_category = {}
    for category in list_categories():
        responses_by_category[category] = resolve_responses(
            category, answers_by_category.get(category)
        )

    extra = [category for category in answers_by_category if category not in responses_by_category]
    if extra:
        raise InvalidInput(extra[0], "unknown questionnaire category")

    result = evaluate_assessment(values, responses_by_category)
    snapshot = dict(values)
    snapshot["responses"] = responses_by_category

    stored = _store_record(
        patient_id,
        {
            "created_at": _now(),
            "overall_score": result["overall_score"],
            "preview_score": result["preview_score"],
            "bmi": result["bmi"],
            "category_scores": result["category_scores"],
            "data": snapshot,
        },
    )

    result["status"] = score_status(result["overall_score"])
    result["record"] = _summarize_record(stored)
    return result


def get_health_history(patient_id, limit=None):
    if not get_patient(patient_id):
        return None

    records = load_history(patient_id, limit=_normalize_limit(limit))
    return [_summarize_record(record) for record in records]


def get_dashboard_metrics(patient_id):
    if not get_patient(patient_id):
        return None

    latest = load_latest_record(patient_id)
    if not latest:
        return {"latest_health": None, "metrics": None}

    history = load_history(patient_id, limit=HISTORY_LIMIT)
    return {
        "latest_health": _summarize_record(latest),
        "metrics": compute_breakdown_metrics(latest, history),
    }


def get_patient_report(patient_id, limit=None):
    """Overview, breakdown metrics and history in one payload for the doctor view."""
    overview = get_patient_overview(patient_id)
    if not overview:
        return None

    dashboard = get_dashboard_metrics(patient_id)
    overview["metrics"] = dashboard["metrics"]
    overview["history"] = get_health_history(patient_id, limit=limit)
    return overview


def update_patient_profile(patient_id, profile):
    patient = get_patient(patient_id)
    if not patient:
        return None

    profile = profile or {}
    unknown = [key for key in profile if key not in ("name", "email")]
    if unknown:
        raise InvalidInput(unknown[0], "field cannot be updated")

    name = str(profile.get("name", patient["name"])).strip()
    email = str(profile.get("email", patient["email"])).strip().lower()
    if not name:
        raise InvalidInput("name", "is required")
    if not email or "@" not in email:
        raise InvalidInput("email", "must be a valid email address")

    existing = get_patient_by_email(email)
    if existing and existing["id"] != patient_id:
        raise InvalidInput("email", "is already registered")

    update_patient(patient_id, name, email)
    logger.info("Updated profile for patient %s", patient_id)
    return _public_patient(get_patient(patient_id))
