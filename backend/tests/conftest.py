import pytest
from flask_jwt_extended import create_access_token

from content_engine import create_app
from content_engine.extensions import db
from content_engine.store.section_store import SectionStore


@pytest.fixture
def app(tmp_path):
    app = create_app("testing")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return SectionStore()


def _bearer(role):
    token = create_access_token(identity=f"{role}-1", additional_claims={"role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(app):
    return _bearer("admin")


@pytest.fixture
def reader_headers(app):
    return _bearer("reader")


@pytest.fixture
def create_section(client, admin_headers):
    """POST a section as admin and return the serialized record."""
    def _create(**fields):
        payload = {"pageKey": "home", "heading": "Welcome", "body": "Hello there"}
        payload.update(fields)
        response = client.post("/api/v1/sections", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["section"]
    return _create
