import pytest

import database
from app import app as flask_app


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "healthmosaic-test.db"
    monkeypatch.setattr(database, "DB_PATH", str(path))
    database.init_db()
    return path


@pytest.fixture
def app(db_path):
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def healthy_input():
    return {
        "age": 30,
        "weight": 70,
        "height": 175,
        "exercise_days": 5,
        "sleep_hours": 8,
        "stress_level": 3,
    }
