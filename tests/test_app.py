from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import health_chat_api
from question_bank import CATEGORY_QUESTIONS


def _register_patient(client, email="asha@example.com"):
    response = client.post(
        "/patient/register",
        json={"name": "Asha", "email": email, "password": "secret123"},
    )
    assert response.status_code == 201
    return response.get_json()["patient_id"]


def _register_doctor(client, email="rao@example.com"):
    response = client.post(
        "/doctor/register",
        json={"name": "Dr. Rao", "email": email, "password": "secret123", "specialization": "Cardiology"},
    )
    assert response.status_code == 201
    return response.get_json()["doctor_id"]


@pytest.fixture
def patient_client(app):
    client = app.test_client()
    client.patient_id = _register_patient(client)
    return client


def test_health_check(client):
    assert client.get("/health").get_json()["status"] == "ok"


def test_routes_require_login(client):
    assert client.get("/patient/dashboard").status_code == 401
    assert client.post("/assessment/submit", json={}).status_code == 401
    assert client.get("/health/history").status_code == 401
    assert client.post("/api/health-chat", json={}).status_code == 401
    assert client.get("/doctor/dashboard").status_code == 401


def test_register_rejects_short_password(client):
    response = client.post(
        "/patient/register", json={"name": "Asha", "email": "asha@example.com", "password": "123"}
    )

    assert response.status_code == 400
    assert response.get_json()["field"] == "password"


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"email": "asha@example.com", "password": "secret123"}, "name"),
        ({"name": "Asha", "password": "secret123"}, "email"),
    ],
)
def test_register_reports_missing_field(client, payload, field):
    response = client.post("/patient/register", json=payload)

    assert response.status_code == 400
    assert response.get_json()["field"] == field


def test_duplicate_registration(client):
    _register_patient(client)
    response = client.post(
        "/patient/register", json={"name": "Asha", "email": "ASHA@example.com", "password": "secret123"}
    )
    assert response.status_code == 409


def test_login_and_logout(client):
    patient_id = _register_patient(client)
    client.get("/patient/logout")
    assert client.get("/patient/dashboard").status_code == 401

    bad = client.post("/patient/login", json={"email": "asha@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401

    good = client.post("/patient/login", data={"email": "asha@example.com", "password": "secret123"})
    assert good.get_json() == {"success": True, "patient_id": patient_id}
    assert client.get("/patient/dashboard").status_code == 200


def test_preview_then_submit_from_form_strings(patient_client):
    form = {
        "age": "70",
        "weight": "70",
        "height": "175",
        "exercise_days": "5",
        "sleep_hours": "8",
        "stress_level": "3",
    }

    preview = patient_client.post("/assessment/preview", data=form).get_json()
    submitted = patient_client.post("/assessment/submit", data=form)

    assert preview["preview_score"] == 97
    assert submitted.status_code == 201
    body = submitted.get_json()
    assert body["preview_score"] == 97
    assert body["score"] == 95


def test_submit_invalid_input(patient_client, healthy_input):
    response = patient_client.post("/assessment/submit", json=dict(healthy_input, height=0))

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["field"] == "height"


def test_submit_non_numeric_input(patient_client, healthy_input):
    response = patient_client.post("/assessment/submit", json=dict(healthy_input, stress_level="high"))

    assert response.status_code == 400
    assert response.get_json()["field"] == "stress_level"


def test_dashboard_and_history(patient_client, healthy_input):
    patient_client.post("/assessment/submit", json=dict(healthy_input, exercise_days=2))
    patient_client.post("/assessment/submit", json=healthy_input)

    dashboard = patient_client.get("/patient/dashboard").get_json()
    assert dashboard["patient"]["id"] == patient_client.patient_id
    assert dashboard["latest_health"]["score"] == 97
    assert dashboard["metrics"]["heart_health"] == 95
    assert len(dashboard["history"]) == 2

    history = patient_client.get("/health/history?limit=1").get_json()
    assert len(history["records"]) == 1
    assert history["records"][0]["score"] == 97

    assert patient_client.get("/health/history?limit=0").status_code == 400
    assert patient_client.get("/health/history?limit=abc").status_code == 400


def test_questions_and_full_assessment(patient_client, healthy_input):
    questions = patient_client.get("/assessment/questions").get_json()
    assert set(questions["categories"]) == set(CATEGORY_QUESTIONS)

    responses = {
        category: {q["id"]: q["options"][1]["label"] for q in category_questions}
        for category, category_questions in questions["categories"].items()
    }
    basic_info = {key: str(value) for key, value in healthy_input.items()}

    response = patient_client.post("/assessment/full", json={"basic_info": basic_info, "responses": responses})

    assert response.status_code == 201
    body = response.get_json()
    assert body["overall_score"] == 97
    assert body["category_scores"] == {"physical": 60, "mental": 60, "nutrition": 60, "sleep": 60}
    assert body["recommendations"]["sleep"] == []


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"basic_info": "abc"}, "basic_info"),
        ({"basic_info": ["age", 30]}, "basic_info"),
        ({"responses": ["x"]}, "responses"),
        ({"responses": {"physical": ["x"]}}, "physical"),
    ],
)
def test_full_assessment_rejects_malformed_body(patient_client, healthy_input, payload, field):
    body = {"basic_info": healthy_input, "responses": {}}
    body.update(payload)

    response = patient_client.post("/assessment/full", json=body)

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert response.get_json()["field"] == field


def test_update_profile(patient_client):
    response = patient_client.post("/patient/profile", json={"name": "Asha K"})

    assert response.get_json()["patient"]["name"] == "Asha K"


def test_health_chat(patient_client, monkeypatch):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text="How long have you had it?")
    monkeypatch.setattr(health_chat_api, "_get_client", lambda: client)

    response = patient_client.post(
        "/api/health-chat",
        json={"messages": [{"role": "user", "content": "I have a headache"}]},
    )

    assert response.get_json() == {"message": "How long have you had it?", "emergency": False}


def test_health_chat_unavailable(patient_client, monkeypatch):
    monkeypatch.setattr(health_chat_api, "_get_client", lambda: None)

    response = patient_client.post(
        "/api/health-chat",
        json={"messages": [{"role": "user", "content": "I have a headache"}]},
    )

    assert response.status_code == 503
    assert response.get_json()["success"] is False


def test_health_chat_rejects_bad_messages(patient_client):
    response = patient_client.post("/api/health-chat", json={"messages": []})
    assert response.status_code == 400


def test_doctor_patient_flow(app, patient_client, healthy_input):
    doctor_client = app.test_client()
    _register_doctor(doctor_client)
    login = doctor_client.post("/doctor/login", json={"email": "rao@example.com", "password": "secret123"})
    assert login.status_code == 200

    patient_id = patient_client.patient_id
    patient_client.post("/assessment/submit", json=healthy_input)

    forbidden = doctor_client.get(f"/doctor/patient/{patient_id}")
    assert forbidden.status_code == 403
    assert forbidden.get_json()["success"] is False

    link = patient_client.post("/connect_doctor", json={"doctor_email": "rao@example.com"}).get_json()
    assert link["status"] == "pending"

    pending = doctor_client.get("/doctor/dashboard").get_json()["pending_links"]
    assert [p["patient_name"] for p in pending] == ["Asha"]

    assert doctor_client.post(f"/doctor/approve_patient/{link['link_id']}").status_code == 200

    dashboard = doctor_client.get("/doctor/dashboard").get_json()
    assert dashboard["patients"][0]["latest_score"] == 97
    assert dashboard["patients"][0]["status"] == "Excellent"

    detail = doctor_client.get(f"/doctor/patient/{patient_id}").get_json()
    assert detail["latest_health"]["score"] == 97
    assert detail["metrics"]["skeletal"] == 85
    assert len(detail["history"]) == 1


def test_connect_unknown_doctor(patient_client):
    response = patient_client.post("/connect_doctor", json={"doctor_email": "nobody@example.com"})
    assert response.status_code == 404


def test_approve_unknown_link(app):
    doctor_client = app.test_client()
    _register_doctor(doctor_client)
    doctor_client.post("/doctor/login", json={"email": "rao@example.com", "password": "secret123"})

    response = doctor_client.post("/doctor/approve_patient/999")
    assert response.status_code == 404
    assert response.get_json()["success"] is False
